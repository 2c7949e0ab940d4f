"""Base interface for capture sources"""

from abc import ABC, abstractmethod
from typing import Callable, List, Union

from framecheck.models.enums import TargetKind
from framecheck.models.frames import CaptureConfig, CaptureTarget, MediaSample


class CaptureSourceError(Exception):
    """Raised (or delivered through the frame callback) by capture sources"""
    pass


# Receives every MediaSample, or a CaptureSourceError when the transport fails
FrameCallback = Callable[[Union[MediaSample, CaptureSourceError]], None]


class CaptureSource(ABC):
    """External producer of timestamped media samples
    
    Implementations call the frame callback from their own thread until
    stop() has returned.
    """
    
    @abstractmethod
    async def enumerate_targets(self, kind: TargetKind = TargetKind.ALL) -> List[CaptureTarget]:
        """List capturable targets
        
        Args:
            kind: DISPLAY, WINDOW or ALL
            
        Returns:
            Ordered list of targets
            
        Raises:
            CaptureSourceError: If enumeration fails
        """
        pass
    
    @abstractmethod
    async def start(self, target: CaptureTarget, config: CaptureConfig,
                    on_sample: FrameCallback) -> bool:
        """Begin delivering samples for target
        
        Returns:
            True if the request was accepted; no frame is guaranteed either way
        """
        pass
    
    @abstractmethod
    async def stop(self) -> None:
        """Stop delivery and wait until no callback is running or pending"""
        pass
