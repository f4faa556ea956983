"""Audio input pipelines that expose the most recent buffer of samples."""

from __future__ import annotations
import threading
from typing import Optional, Dict, Any, List, ClassVar

import numpy as np
import sounddevice as sd

from ..logging_config import get_logger
from ..core.errors import DeviceUnavailableError, PermissionDeniedError, TunerStateError
from ..core.interfaces import IAudioSource
from .utils import DEFAULT_BUFFER_SIZE

logger = get_logger(__name__)


class SoundDeviceInput(IAudioSource):
    """Microphone input using the sounddevice library.

    The stream callback runs on the PortAudio thread and keeps a ring
    buffer of the latest ``buffer_size`` mono samples; ``read`` copies it
    out, so the caller always sees the most recent audio regardless of
    the stream's block size.
    """

    BUFFER_SIZE: ClassVar[int] = DEFAULT_BUFFER_SIZE
    CHANNELS: ClassVar[int] = 1  # Mono audio
    # Tried in order after the requested or device default rate
    COMMON_RATES: ClassVar[List[int]] = [48000, 44100, 22050, 16000]

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[float] = None,
        buffer_size: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> None:
        """Initialize the audio input handler.

        Args:
            device_id: Audio input device ID, or None for the system default
            sample_rate: Sample rate in Hz, or None for the device default
            buffer_size: Samples per analysis buffer, or None for default (2048)
            channels: Number of channels to capture; the first one is analysed
        """
        self._device_id = device_id
        self._requested_rate = sample_rate
        self._buffer_size = buffer_size or self.BUFFER_SIZE
        self._channels = channels or self.CHANNELS

        self._device_info: Optional[Dict[str, Any]] = None
        self._stream: Optional[sd.InputStream] = None
        self._sample_rate = float(sample_rate or 0.0)

        self._ring = np.zeros(self._buffer_size, dtype=np.float32)
        self._ring_lock = threading.Lock()

    def request_access(self) -> None:
        """Check that an input device exists and can be queried."""
        try:
            info = sd.query_devices(self._device_id, kind="input")
        except (sd.PortAudioError, ValueError) as e:
            raise PermissionDeniedError(f"Audio input not accessible: {e}") from e

        if info["max_input_channels"] < 1:
            raise PermissionDeniedError(f"Device {info['name']!r} has no input channels")

        self._device_info = dict(info)
        logger.info(f"Using input device: {info['name']}")

    def _candidate_rates(self) -> List[float]:
        rates: List[float] = []
        if self._requested_rate:
            rates.append(float(self._requested_rate))
        if self._device_info and self._device_info.get("default_samplerate"):
            rates.append(float(self._device_info["default_samplerate"]))
        for rate in self.COMMON_RATES:
            if float(rate) not in rates:
                rates.append(float(rate))
        return rates

    def open(self) -> None:
        """Start the input stream, trying sample rates until one works."""
        if self._stream is not None:
            logger.warning("Audio input already open")
            return

        last_error: Optional[Exception] = None
        for rate in self._candidate_rates():
            stream = None
            try:
                logger.debug(f"Trying to open audio input at {rate:.0f} Hz")
                stream = sd.InputStream(
                    device=self._device_id,
                    channels=self._channels,
                    samplerate=rate,
                    dtype="float32",
                    callback=self._audio_callback,
                )
                stream.start()
            except (sd.PortAudioError, ValueError) as e:
                logger.warning(f"Failed to open audio input at {rate:.0f} Hz: {e}")
                last_error = e
                if stream is not None:
                    stream.close(ignore_errors=True)
                continue

            self._stream = stream
            self._sample_rate = float(stream.samplerate)
            logger.info(f"Audio input started with sample rate {self._sample_rate:.0f} Hz")
            return

        raise DeviceUnavailableError(
            f"Could not open audio input with any sample rate: {last_error}"
        )

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info,
        status: sd.CallbackFlags,
    ) -> None:
        """Push new samples into the ring buffer (runs on the audio thread)."""
        if status:
            logger.debug(f"Audio callback status: {status}")

        data = indata[:, 0] if indata.ndim > 1 else indata
        n = len(data)
        size = self._buffer_size
        with self._ring_lock:
            if n >= size:
                self._ring[:] = data[-size:]
            else:
                self._ring[:-n] = self._ring[n:]
                self._ring[-n:] = data

    def read(self, out: np.ndarray) -> None:
        if self._stream is None:
            raise TunerStateError("Audio input is not open")
        with self._ring_lock:
            out[:] = self._ring

    def close(self) -> None:
        """Stop and close the stream; does nothing if already closed."""
        if self._stream is None:
            return

        stream, self._stream = self._stream, None
        try:
            stream.stop()
            stream.close()
            logger.info("Audio input stopped")
        except sd.PortAudioError as e:
            logger.error(f"Error stopping audio input: {e}")

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def is_open(self) -> bool:
        return self._stream is not None


def list_input_devices() -> List[Dict[str, Any]]:
    """Return the devices that can record, with their index and default rate."""
    devices = []
    for index, device in enumerate(sd.query_devices()):
        if device["max_input_channels"] > 0:
            devices.append(
                {
                    "index": index,
                    "name": device["name"],
                    "max_input_channels": device["max_input_channels"],
                    "default_samplerate": device["default_samplerate"],
                }
            )
    return devices
