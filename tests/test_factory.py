import pytest

pytest.importorskip("aubio")
try:
    import sounddevice  # noqa: F401
except OSError:
    pytest.skip("PortAudio library not available", allow_module_level=True)

from chromatic_tuner.audio.file_input import WavFileInput
from chromatic_tuner.audio.mcleod import McLeodPitchDetector
from chromatic_tuner.audio.pitch_detector import AubioPitchDetector
from chromatic_tuner.audio.scheduler import FrameScheduler
from chromatic_tuner.core.config import ConfigManager
from chromatic_tuner.core.factory import ComponentFactory
from chromatic_tuner.mock_components import ManualScheduler, MockAudioSource, MockPitchDetector
from chromatic_tuner.note_table import NOTE_TABLE
from chromatic_tuner.sampling_loop import LoopState


@pytest.fixture
def factory(tmp_path):
    return ComponentFactory(ConfigManager(str(tmp_path)))


def test_default_detector_is_aubio_yin(factory):
    detector = factory.create_pitch_detector()
    assert isinstance(detector, AubioPitchDetector)
    assert detector.buffer_size == 2048


def test_mcleod_detector_uses_configured_cutoff(factory):
    factory.config_manager.update_config("pitch_detector", {"cutoff": 0.9})
    detector = factory.create_pitch_detector("mcleod", buffer_size=1024)
    assert isinstance(detector, McLeodPitchDetector)
    assert detector.buffer_size == 1024
    assert detector.cutoff == 0.9


def test_unknown_detector(factory):
    with pytest.raises(ValueError):
        factory.create_pitch_detector("fft")


def test_unknown_audio_source(factory):
    with pytest.raises(ValueError):
        factory.create_audio_source("network")


def test_wav_source(factory, tone_file):
    source = factory.create_audio_source("wav", file_path=tone_file())
    assert isinstance(source, WavFileInput)
    assert source.buffer_size == 2048


def test_default_resolver_uses_note_table(factory):
    assert factory.create_resolver().table is NOTE_TABLE


def test_resolver_for_other_concert_pitch(factory):
    resolver = factory.create_resolver(reference_a4=442.0)
    assert resolver.resolve(442.0).name == "A4"
    assert resolver.resolve(442.0).frequency == 442.0


def test_resolver_with_flats(factory):
    resolver = factory.create_resolver(use_flats=True)
    assert resolver.resolve(466.16).name == "Bb4"


def test_sampling_loop_from_config(factory):
    loop = factory.create_sampling_loop(
        audio_source=MockAudioSource(),
        pitch_detector=MockPitchDetector(),
        scheduler=ManualScheduler(),
    )
    assert loop.state is LoopState.IDLE
    assert loop.confidence_threshold == 0.92
    assert loop.require_positive_frequency


def test_sampling_loop_overrides(factory):
    scheduler = ManualScheduler()
    loop = factory.create_sampling_loop(
        audio_source=MockAudioSource(),
        pitch_detector=MockPitchDetector([(442.0, 0.99)]),
        scheduler=scheduler,
        confidence_threshold=0.95,
        require_positive_frequency=False,
        reference_a4=442.0,
    )
    assert loop.confidence_threshold == 0.95
    assert not loop.require_positive_frequency

    loop.start()
    scheduler.advance()
    assert loop.reading.note_name == "A4"
    assert loop.reading.cent_deviation == pytest.approx(0.0)
    loop.stop()
    # Overrides apply to this loop only
    assert factory.config_manager.get_config("tuner")["confidence_threshold"] == 0.92


def test_sampling_loop_builds_frame_scheduler(factory, tone_file):
    source = factory.create_audio_source("wav", file_path=tone_file())
    loop = factory.create_sampling_loop(
        audio_source=source,
        pitch_detector=factory.create_pitch_detector("mcleod"),
        frame_rate=120.0,
    )
    assert isinstance(loop._scheduler, FrameScheduler)
    assert loop._scheduler.frame_rate == 120.0


def test_sampling_loop_rejects_unknown_override(factory):
    with pytest.raises(ValueError, match="confidence_treshold"):
        factory.create_sampling_loop(
            audio_source=MockAudioSource(),
            pitch_detector=MockPitchDetector(),
            scheduler=ManualScheduler(),
            confidence_treshold=0.95,
        )
