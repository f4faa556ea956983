import numpy as np
import pytest

try:
    import sounddevice as sd
except OSError:
    pytest.skip("PortAudio library not available", allow_module_level=True)

from chromatic_tuner.audio import audio_input
from chromatic_tuner.audio.audio_input import SoundDeviceInput, list_input_devices
from chromatic_tuner.core.errors import DeviceUnavailableError, PermissionDeniedError, TunerStateError

MIC = {
    "name": "Test Mic",
    "max_input_channels": 1,
    "max_output_channels": 0,
    "default_samplerate": 48000.0,
}


class FakeStream:
    instances = []
    failing_rates = set()

    def __init__(self, device=None, channels=1, samplerate=None, dtype=None, callback=None):
        if samplerate in self.failing_rates:
            raise sd.PortAudioError(f"Invalid sample rate {samplerate}")
        self.samplerate = samplerate
        self.callback = callback
        self.started = False
        self.stop_calls = 0
        self.close_calls = 0
        FakeStream.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.stop_calls += 1

    def close(self, ignore_errors=True):
        self.close_calls += 1


@pytest.fixture
def fake_sd(monkeypatch):
    FakeStream.instances = []
    FakeStream.failing_rates = set()
    monkeypatch.setattr(audio_input.sd, "query_devices", lambda device=None, kind=None: MIC if kind else [MIC])
    monkeypatch.setattr(audio_input.sd, "InputStream", FakeStream)
    return FakeStream


def test_opens_at_device_default_rate(fake_sd):
    source = SoundDeviceInput()
    source.request_access()
    source.open()

    assert source.is_open
    assert source.sample_rate == 48000.0
    assert fake_sd.instances[0].started


def test_requested_rate_is_tried_first(fake_sd):
    source = SoundDeviceInput(sample_rate=44100)
    source.request_access()
    source.open()
    assert source.sample_rate == 44100.0


def test_falls_back_to_supported_rate(fake_sd):
    fake_sd.failing_rates = {48000.0}
    source = SoundDeviceInput()
    source.request_access()
    source.open()
    assert source.sample_rate == 44100.0


def test_no_supported_rate_is_unavailable(fake_sd):
    fake_sd.failing_rates = {48000.0, 44100.0, 22050.0, 16000.0}
    source = SoundDeviceInput()
    source.request_access()
    with pytest.raises(DeviceUnavailableError):
        source.open()
    assert not source.is_open


def test_query_failure_is_permission_denied(monkeypatch):
    def refuse(device=None, kind=None):
        raise sd.PortAudioError("Error querying device -1")

    monkeypatch.setattr(audio_input.sd, "query_devices", refuse)
    with pytest.raises(PermissionDeniedError):
        SoundDeviceInput().request_access()


def test_device_without_inputs_is_permission_denied(monkeypatch):
    speaker = dict(MIC, name="Speaker", max_input_channels=0)
    monkeypatch.setattr(audio_input.sd, "query_devices", lambda device=None, kind=None: speaker)
    with pytest.raises(PermissionDeniedError):
        SoundDeviceInput().request_access()


def test_ring_buffer_keeps_latest_samples(fake_sd):
    source = SoundDeviceInput(buffer_size=8)
    source.request_access()
    source.open()
    callback = fake_sd.instances[0].callback

    callback(np.arange(1, 6, dtype=np.float32).reshape(-1, 1), 5, None, None)
    callback(np.arange(6, 11, dtype=np.float32).reshape(-1, 1), 5, None, None)

    out = np.zeros(8, dtype=np.float32)
    source.read(out)
    np.testing.assert_array_equal(out, np.arange(3, 11, dtype=np.float32))

    callback(np.arange(100, 120, dtype=np.float32).reshape(-1, 1), 20, None, None)
    source.read(out)
    np.testing.assert_array_equal(out, np.arange(112, 120, dtype=np.float32))


def test_read_requires_open(fake_sd):
    with pytest.raises(TunerStateError):
        SoundDeviceInput().read(np.zeros(2048, dtype=np.float32))


def test_close_releases_stream_once(fake_sd):
    source = SoundDeviceInput()
    source.request_access()
    source.open()
    stream = fake_sd.instances[0]

    source.close()
    source.close()

    assert not source.is_open
    assert stream.stop_calls == 1
    assert stream.close_calls == 1


def test_list_input_devices(monkeypatch):
    speaker = dict(MIC, name="Speaker", max_input_channels=0)
    monkeypatch.setattr(audio_input.sd, "query_devices", lambda: [speaker, MIC])
    devices = list_input_devices()
    assert devices == [
        {"index": 1, "name": "Test Mic", "max_input_channels": 1, "default_samplerate": 48000.0}
    ]
