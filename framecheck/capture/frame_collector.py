"""Frame Collector

Thread-safe accumulator for frame events delivered by a capture source. The
capture source's thread appends while the orchestration flow polls counts;
the snapshot handed to the Analyzer is taken with freeze() once the owning
CaptureSession has stopped.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from framecheck.models.enums import FrameKind
from framecheck.models.frames import FrameEvent, MediaSample
from framecheck.config.config_loader import config


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectorSnapshot:
    """Read-only view of a frozen FrameCollector
    
    Attributes:
        video: Video events in arrival order
        audio: Audio events in arrival order
        dropped: Events rejected per kind because capacity was reached
        error: Transport error text, if the source reported one
    """
    video: Tuple[FrameEvent, ...] = ()
    audio: Tuple[FrameEvent, ...] = ()
    dropped: Dict[FrameKind, int] = field(default_factory=dict)
    error: Optional[str] = None
    
    def events(self, kind: FrameKind) -> Tuple[FrameEvent, ...]:
        return self.video if kind == FrameKind.VIDEO else self.audio
    
    def timestamps(self, kind: FrameKind) -> np.ndarray:
        return np.array([event.timestamp for event in self.events(kind)], dtype=np.float64)
    
    @property
    def first_event(self) -> Optional[FrameEvent]:
        """Earliest recorded event of either kind"""
        candidates = [events[0] for events in (self.video, self.audio) if events]
        if not candidates:
            return None
        return min(candidates, key=lambda event: event.sequence)


class FrameCollector:
    """Accumulates FrameEvents from concurrent frame callbacks.
    
    Every accepted sample gets the next sequence number; a sample carrying
    both video and audio produces one event of each kind with the same
    sequence number. Events beyond the per-kind capacity are dropped with
    a warning so long runs stay bounded in memory.
    
    Attributes:
        video_capacity: Maximum video events kept
        audio_capacity: Maximum audio events kept
    """
    
    def __init__(self, video_capacity: Optional[int] = None, audio_capacity: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.video_capacity = video_capacity if video_capacity is not None else \
            config.get('collector.default_video_capacity', 10000)
        self.audio_capacity = audio_capacity if audio_capacity is not None else \
            config.get('collector.default_audio_capacity', 20000)
        assert self.video_capacity >= 0 and self.audio_capacity >= 0, "Capacities must be non-negative"
        
        self._clock = clock
        self._lock = threading.Lock()
        self._events: Dict[FrameKind, List[FrameEvent]] = {FrameKind.VIDEO: [], FrameKind.AUDIO: []}
        self._dropped: Dict[FrameKind, int] = {FrameKind.VIDEO: 0, FrameKind.AUDIO: 0}
        self._next_sequence = 0
        self._frozen = False
        self._error: Optional[str] = None
        self._listeners: List[Callable[[], None]] = []
        self._snapshot: Optional[CollectorSnapshot] = None
    
    def capacity(self, kind: FrameKind) -> int:
        return self.video_capacity if kind == FrameKind.VIDEO else self.audio_capacity
    
    def add_listener(self, listener: Callable[[], None]) -> None:
        """Register a callable invoked after every append or error.
        
        Listeners run on the producer's thread, so they must be cheap and
        thread-safe (DeadlineGate.notify is).
        """
        self._listeners.append(listener)
    
    def record_sample(self, sample: MediaSample) -> List[FrameEvent]:
        """Record the video and/or audio carried by sample.
        
        Args:
            sample: MediaSample delivered by the capture source
            
        Returns:
            Events that were accepted (empty when frozen or over capacity)
        """
        accepted = []
        with self._lock:
            if self._frozen:
                logger.debug("Sample delivered after freeze, ignoring")
                return accepted
            
            timestamp = self._clock()
            sequence = self._next_sequence
            self._next_sequence += 1
            
            if sample.video_buffer is not None:
                event = FrameEvent.from_video(sample, timestamp, sequence)
                if self._append_locked(event):
                    accepted.append(event)
            
            if sample.audio_buffer is not None:
                event = FrameEvent.from_audio(sample, timestamp, sequence)
                if self._append_locked(event):
                    accepted.append(event)
        
        self._notify()
        return accepted
    
    def _append_locked(self, event: FrameEvent) -> bool:
        events = self._events[event.kind]
        if len(events) >= self.capacity(event.kind):
            self._dropped[event.kind] += 1
            if self._dropped[event.kind] == 1:
                logger.warning(f"{event.kind.value} capacity ({self.capacity(event.kind)}) reached, "
                               f"dropping further {event.kind.value} events")
            else:
                logger.debug(f"Dropped {event.kind.value} event #{event.sequence}")
            return False
        events.append(event)
        return True
    
    def record_error(self, error: Exception) -> None:
        """Record a transport error reported by the capture source"""
        with self._lock:
            if self._frozen:
                return
            if self._error is None:
                self._error = str(error) or error.__class__.__name__
        logger.error(f"Capture source reported an error: {error}")
        self._notify()
    
    def _notify(self) -> None:
        for listener in self._listeners:
            try:
                listener()
            except Exception as e:
                logger.warning(f"Collector listener failed: {e}")
    
    def count(self, kind: FrameKind) -> int:
        with self._lock:
            return len(self._events[kind])
    
    def has_at_least(self, kind: FrameKind, count: int) -> bool:
        return self.count(kind) >= count
    
    def threshold(self, kind: FrameKind, count: int) -> Callable[[], bool]:
        """Predicate that becomes true once count events of kind are recorded"""
        return lambda: self.has_at_least(kind, count)
    
    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error
    
    @property
    def failed(self) -> bool:
        return self.error is not None
    
    @property
    def frozen(self) -> bool:
        with self._lock:
            return self._frozen
    
    def last_event(self, kind: FrameKind) -> Optional[FrameEvent]:
        with self._lock:
            events = self._events[kind]
            return events[-1] if events else None
    
    def freeze(self) -> CollectorSnapshot:
        """Stop accepting events and return the authoritative snapshot.
        
        Call only after the owning CaptureSession has stopped. Calling again
        returns the same snapshot.
        """
        with self._lock:
            if self._snapshot is None:
                self._frozen = True
                self._snapshot = CollectorSnapshot(
                    video=tuple(self._events[FrameKind.VIDEO]),
                    audio=tuple(self._events[FrameKind.AUDIO]),
                    dropped=dict(self._dropped),
                    error=self._error,
                )
            return self._snapshot
