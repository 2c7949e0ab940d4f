"""Simulated capture source

Produces synthetic video and audio samples from a background thread at the
requested frame rate. Used by the command line runner, the dashboard and
the test suite in place of an OS-level screen capture backend.
"""

import asyncio
import logging
import threading
import time
from dataclasses import replace
from typing import Dict, List, Optional

import numpy as np

from framecheck.models.enums import TargetKind, ImageFormat
from framecheck.models.frames import (
    AudioInfo,
    CaptureConfig,
    CaptureTarget,
    MediaSample,
    SampleMetadata,
    VideoInfo,
)
from framecheck.models.interfaces import CaptureSource, CaptureSourceError, FrameCallback
from framecheck.config.config_loader import config


logger = logging.getLogger(__name__)


def default_targets() -> List[CaptureTarget]:
    width = config.get('capture.simulated.width', 640)
    height = config.get('capture.simulated.height', 360)
    return [
        CaptureTarget(kind=TargetKind.DISPLAY, target_id=1, width=width, height=height),
        CaptureTarget(kind=TargetKind.WINDOW, target_id=101, width=width // 2, height=height // 2,
                      title="Simulated Window", app_name="framecheck"),
    ]


class SimulatedCaptureSource(CaptureSource):
    """Thread-driven capture source with injectable faults.
    
    Frames are scheduled against absolute deadlines (start + n * interval)
    so the delivered rate does not drift with scheduling jitter.
    
    Attributes:
        targets: Targets reported by enumerate_targets()
        reject_start: Decline every start() request
        fail_enumeration: Raise CaptureSourceError from enumerate_targets()
        stall_after: Stop delivering anything after this many video frames
        fail_after: Deliver a transport error after this many video frames
        rate_scale: Multiplier applied to the requested frame rate
        emit_audio: Deliver audio buffers alongside video
        video_overrides: VideoInfo fields to override (e.g., {"width": 0})
        audio_overrides: AudioInfo fields to override
        starts: Number of accepted start() calls
    """
    
    def __init__(
        self,
        targets: Optional[List[CaptureTarget]] = None,
        reject_start: bool = False,
        fail_enumeration: bool = False,
        stall_after: Optional[int] = None,
        fail_after: Optional[int] = None,
        rate_scale: float = 1.0,
        emit_audio: bool = True,
        video_overrides: Optional[Dict] = None,
        audio_overrides: Optional[Dict] = None,
    ):
        self.targets = targets if targets is not None else default_targets()
        self.reject_start = reject_start
        self.fail_enumeration = fail_enumeration
        self.stall_after = stall_after
        self.fail_after = fail_after
        self.rate_scale = rate_scale
        self.emit_audio = emit_audio
        self.video_overrides = video_overrides or {}
        self.audio_overrides = audio_overrides or {}
        
        self.sample_rate = config.get('capture.audio_sample_rate', 48000)
        self.channels = config.get('capture.audio_channels', 2)
        self.frames_per_buffer = config.get('capture.simulated.audio_frames_per_buffer', 1024)
        
        self.starts: int = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
    
    async def enumerate_targets(self, kind: TargetKind = TargetKind.ALL) -> List[CaptureTarget]:
        if self.fail_enumeration:
            raise CaptureSourceError("Screen recording permission denied")
        if kind == TargetKind.ALL:
            return list(self.targets)
        return [target for target in self.targets if target.kind == kind]
    
    async def start(self, target: CaptureTarget, config: CaptureConfig,
                    on_sample: FrameCallback) -> bool:
        if self.reject_start:
            logger.info("Simulated source rejecting start request")
            return False
        if target not in self.targets:
            raise CaptureSourceError(f"Target no longer available: {target.label}")
        if self._thread is not None and self._thread.is_alive():
            raise CaptureSourceError("Capture already running")
        
        self.starts += 1
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._produce,
            args=(target, config, on_sample, self._stop_event),
            name="simulated-capture",
            daemon=True,
        )
        self._thread.start()
        return True
    
    async def stop(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        await asyncio.get_running_loop().run_in_executor(None, thread.join)
        self._thread = None
    
    def _video_info(self, target: CaptureTarget, config: CaptureConfig) -> VideoInfo:
        info = VideoInfo(
            width=target.width,
            height=target.height,
            bytes_per_row=target.width * 4,
            format=config.image_format.value,
            quality=config.image_quality.value,
        )
        return replace(info, **self.video_overrides) if self.video_overrides else info
    
    def _audio_info(self, config: CaptureConfig) -> AudioInfo:
        info = AudioInfo(
            sample_rate=config.audio_sample_rate or self.sample_rate,
            channel_count=config.audio_channels or self.channels,
            bytes_per_frame=4 * (config.audio_channels or self.channels),
            frame_count=self.frames_per_buffer,
        )
        return replace(info, **self.audio_overrides) if self.audio_overrides else info
    
    def _produce(self, target: CaptureTarget, config: CaptureConfig,
                 on_sample: FrameCallback, stop_event: threading.Event) -> None:
        video_info = self._video_info(target, config)
        audio_info = self._audio_info(config)
        
        if config.image_format == ImageFormat.RAW:
            video_bytes = target.height * target.width * 4
        else:
            video_bytes = max(1, int(target.width * target.height * config.image_quality.value / 10))
        video_buffer = np.zeros(video_bytes, dtype=np.uint8)
        audio_buffer = np.zeros(self.frames_per_buffer * audio_info.channel_count, dtype=np.float32)
        
        rate = config.frame_rate * self.rate_scale
        video_interval = 1.0 / rate if rate > 0 else None
        audio_interval = self.frames_per_buffer / float(audio_info.sample_rate or self.sample_rate)
        
        start = time.monotonic()
        next_video = start
        next_audio = start
        video_frames = 0
        
        while not stop_event.is_set():
            now = time.monotonic()
            due_video = video_interval is not None and now >= next_video
            due_audio = self.emit_audio and now >= next_audio
            
            if due_video or due_audio:
                if self.stall_after is not None and video_frames >= self.stall_after:
                    logger.info("Simulated source stalling")
                    stop_event.wait()
                    break
                if self.fail_after is not None and video_frames >= self.fail_after:
                    on_sample(CaptureSourceError("Simulated transport failure"))
                    stop_event.wait()
                    break
                
                sample = MediaSample(
                    metadata=SampleMetadata(
                        timestamp=now,
                        has_video=due_video,
                        has_audio=due_audio,
                        video_info=video_info if due_video else None,
                        audio_info=audio_info if due_audio else None,
                    ),
                    video_buffer=video_buffer if due_video else None,
                    audio_buffer=audio_buffer if due_audio else None,
                )
                on_sample(sample)
                
                if due_video:
                    video_frames += 1
                    next_video += video_interval
                if due_audio:
                    next_audio += audio_interval
            
            deadlines = []
            if video_interval is not None:
                deadlines.append(next_video)
            if self.emit_audio:
                deadlines.append(next_audio)
            wait = min(deadlines) - time.monotonic() if deadlines else 0.1
            if wait > 0:
                stop_event.wait(wait)
        
        logger.debug(f"Simulated source stopped after {video_frames} video frames")
