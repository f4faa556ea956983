"""The sampling loop that drives capture, detection and scoring."""

from __future__ import annotations
import threading
from enum import Enum
from typing import Optional

import numpy as np

from .logging_config import get_logger
from .core.errors import (
    DeviceUnavailableError,
    PermissionDeniedError,
    TunerStateError,
)
from .core.events import TunerEvents
from .core.interfaces import IAudioSource, IFrameScheduler, IPitchDetector, IScheduledTask
from .note_types import DetectionSample, TunerReading
from .tuning import NearestNoteResolver, reading_from_sample

logger = get_logger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.92


class LoopState(Enum):
    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    SAMPLING = "sampling"
    STOPPED = "stopped"


class SamplingLoop:
    """Pulls a buffer each frame, detects its pitch and publishes a reading.

    The loop owns its audio source exclusively. It moves through
    IDLE -> AWAITING_PERMISSION -> SAMPLING -> STOPPED and never leaves
    STOPPED; build a new instance to tune again.
    """

    def __init__(
        self,
        audio_source: IAudioSource,
        pitch_detector: IPitchDetector,
        scheduler: IFrameScheduler,
        resolver: Optional[NearestNoteResolver] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        require_positive_frequency: bool = True,
    ) -> None:
        """Initialize the sampling loop.

        Args:
            audio_source: Input pipeline, opened on start and closed on stop
            pitch_detector: Detector built for the source's buffer size
            scheduler: Frame scheduler that drives run_cycle
            resolver: Nearest-note resolver, or None for the default table
            confidence_threshold: Detector confidence a sample must exceed
            require_positive_frequency: Also reject samples with frequency <= 0
        """
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be between 0.0 and 1.0")
        if pitch_detector.buffer_size != audio_source.buffer_size:
            raise ValueError(
                f"Detector buffer size {pitch_detector.buffer_size} does not match "
                f"audio source buffer size {audio_source.buffer_size}"
            )

        self._audio_source = audio_source
        self._pitch_detector = pitch_detector
        self._scheduler = scheduler
        self._resolver = resolver or NearestNoteResolver()
        self._confidence_threshold = confidence_threshold
        self._require_positive_frequency = require_positive_frequency

        self._buffer = np.zeros(audio_source.buffer_size, dtype=np.float32)
        self._state = LoopState.IDLE
        self._active = False
        self._task: Optional[IScheduledTask] = None
        # Serializes the SAMPLING transition in start() against stop()
        self._lifecycle_lock = threading.RLock()
        self._reading = TunerReading.empty()
        self._error: Optional[Exception] = None
        self.events = TunerEvents()

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def audio_source(self) -> IAudioSource:
        return self._audio_source

    @property
    def reading(self) -> TunerReading:
        """The most recently published reading."""
        return self._reading

    @property
    def error(self) -> Optional[Exception]:
        """The setup failure that stopped the loop, if any."""
        return self._error

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    @property
    def require_positive_frequency(self) -> bool:
        return self._require_positive_frequency

    @property
    def is_active(self) -> bool:
        return self._active

    def _set_state(self, state: LoopState) -> None:
        if self._state is LoopState.STOPPED and state is not LoopState.STOPPED:
            raise TunerStateError(f"Cannot leave {LoopState.STOPPED.value} for {state.value}")
        old_state, self._state = self._state, state
        if old_state is not state:
            logger.debug(f"Sampling loop {old_state.value} -> {state.value}")
            self.events.emit_state_change(old_state, state)

    def start(self) -> bool:
        """Request audio access, open the pipeline and begin sampling.

        Returns:
            True if sampling started, False if setup failed or was aborted

        Raises:
            TunerStateError: If the loop has already been started
        """
        if self._state is not LoopState.IDLE:
            raise TunerStateError(
                f"Cannot start a sampling loop in state {self._state.value}"
            )

        self._active = True
        self._set_state(LoopState.AWAITING_PERMISSION)

        try:
            self._audio_source.request_access()
        except PermissionDeniedError as e:
            self._fail(e)
            return False

        if not self._active:
            logger.info("Sampling loop stopped while awaiting permission; aborting setup")
            return False

        try:
            self._audio_source.open()
        except DeviceUnavailableError as e:
            self._fail(e)
            return False

        with self._lifecycle_lock:
            if not self._active:
                # stop() ran while the pipeline was opening
                logger.info("Sampling loop stopped while opening audio input; aborting setup")
                self._audio_source.close()
                return False

            self._set_state(LoopState.SAMPLING)
            self._task = self._scheduler.schedule(self.run_cycle)
        logger.info(
            f"Sampling started at {self._audio_source.sample_rate:.0f} Hz "
            f"(threshold {self._confidence_threshold})"
        )
        return True

    def _fail(self, error: Exception) -> None:
        """Report a terminal setup failure once and stop."""
        self._error = error
        self._active = False
        logger.error(f"Tuner setup failed: {error}")
        self._audio_source.close()
        self._set_state(LoopState.STOPPED)
        self.events.emit_error(error)

    def run_cycle(self) -> None:
        """Run one read-detect-publish cycle."""
        if not self._active or self._state is not LoopState.SAMPLING:
            return

        sample_rate = self._audio_source.sample_rate
        try:
            self._audio_source.read(self._buffer)
            frequency, confidence = self._pitch_detector.find_pitch(self._buffer, sample_rate)
            sample = DetectionSample(frequency=frequency, confidence=confidence)
            reading = reading_from_sample(
                sample,
                self._resolver,
                self._confidence_threshold,
                self._require_positive_frequency,
            )
        except Exception as e:
            # A failed cycle is a miss, never fatal to the loop
            logger.error(f"Sampling cycle failed: {e}", exc_info=True)
            reading = TunerReading.empty()

        # A stop() issued from another thread while detecting wins
        if not self._active:
            return
        self._publish(reading)

    def _publish(self, reading: TunerReading) -> None:
        self._reading = reading
        self.events.emit_reading(reading)

    def stop(self) -> None:
        """Stop sampling and release the audio pipeline. Idempotent."""
        with self._lifecycle_lock:
            if self._state is LoopState.STOPPED:
                return

            self._active = False
            if self._task is not None:
                self._task.cancel()
                self._task = None

            if self._state is not LoopState.IDLE:
                self._audio_source.close()
                logger.info("Sampling loop stopped")
            self._set_state(LoopState.STOPPED)

    def __enter__(self) -> "SamplingLoop":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
