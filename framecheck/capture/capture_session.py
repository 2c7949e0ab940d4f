"""Capture Session

Wraps one CaptureSource for the duration of a sub-cycle: owns start/stop,
routes frames and transport errors to the caller's handlers, and guarantees
that no handler runs once stop() has returned.
"""

import logging
import threading
from typing import Callable, Optional, Union

from framecheck.models.frames import CaptureConfig, CaptureTarget, MediaSample
from framecheck.models.interfaces import CaptureSource, CaptureSourceError


logger = logging.getLogger(__name__)


class CaptureSessionError(Exception):
    """Exception raised for capture session lifecycle misuse"""
    pass


class CaptureSession:
    """Lifecycle wrapper around an external capture source.
    
    The source calls _dispatch from its own thread. Dispatch holds the
    session lock while the frame handler runs, and stop() clears the
    accepting flag under the same lock, so once stop() returns no handler
    is running and none will run again.
    
    Attributes:
        source: The wrapped CaptureSource
        target: Target passed to the last start()
        config: CaptureConfig passed to the last start()
        delivered: Samples forwarded to the frame handler
        discarded: Callbacks dropped because the session was not accepting
    """
    
    def __init__(self, source: CaptureSource):
        self.source = source
        self.target: Optional[CaptureTarget] = None
        self.config: Optional[CaptureConfig] = None
        self.delivered: int = 0
        self.discarded: int = 0
        
        self._lock = threading.Lock()
        self._accepting = False
        self._active = False
        self._on_frame: Optional[Callable[[MediaSample], None]] = None
        self._on_error: Optional[Callable[[Exception], None]] = None
    
    @property
    def is_active(self) -> bool:
        return self._active
    
    async def start(self, target: CaptureTarget, config: CaptureConfig,
                    on_frame: Callable[[MediaSample], None],
                    on_error: Optional[Callable[[Exception], None]] = None) -> bool:
        """Start capturing target with config.
        
        Args:
            target: Target to capture
            config: Capture settings
            on_frame: Called for every delivered sample, from the source's thread
            on_error: Called when the source signals a transport error
            
        Returns:
            True if the source accepted the request, False if it declined
            
        Raises:
            CaptureSessionError: If the session is already active
        """
        if self._active:
            raise CaptureSessionError("Capture session is already active")
        
        self.target = target
        self.config = config
        with self._lock:
            self._on_frame = on_frame
            self._on_error = on_error
            self._accepting = True
        
        logger.info(f"Starting capture of {target.label} at {config.describe()}")
        try:
            accepted = await self.source.start(target, config, self._dispatch)
        except CaptureSourceError as e:
            logger.warning(f"Capture source rejected start: {e}")
            accepted = False
        
        if not accepted:
            with self._lock:
                self._accepting = False
            logger.warning(f"Capture source declined to start {target.label}")
            return False
        
        self._active = True
        return True
    
    def _dispatch(self, item: Union[MediaSample, CaptureSourceError]) -> None:
        with self._lock:
            if not self._accepting:
                self.discarded += 1
                return
            
            if isinstance(item, Exception):
                if self._on_error is not None:
                    self._on_error(item)
                else:
                    logger.error(f"Unhandled capture error: {item}")
                return
            
            self.delivered += 1
            try:
                self._on_frame(item)
            except Exception as e:
                logger.error(f"Frame handler failed: {e}", exc_info=True)
    
    async def stop(self) -> None:
        """Stop capturing and wait for the source to go quiet.
        
        Safe to call before start(), after a failed start(), or repeatedly.
        """
        with self._lock:
            self._accepting = False
        
        if not self._active:
            logger.debug("Capture session not active, nothing to stop")
            return
        
        self._active = False
        logger.info("Stopping capture...")
        try:
            await self.source.stop()
        except CaptureSourceError as e:
            logger.warning(f"Error stopping capture source: {e}")
        logger.info(f"Capture stopped ({self.delivered} samples delivered)")
