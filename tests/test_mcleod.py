import numpy as np
import pytest

from chromatic_tuner.audio.mcleod import McLeodPitchDetector
from chromatic_tuner.audio.utils import clamp_confidence


def sine(frequency, sample_rate, size=2048, amplitude=0.5):
    t = np.arange(size) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


@pytest.mark.parametrize(
    "frequency, sample_rate",
    [(440.0, 44100.0), (196.0, 48000.0), (659.25, 44100.0), (130.81, 48000.0)],
)
def test_mcleod_finds_sine_pitch(frequency, sample_rate):
    detector = McLeodPitchDetector()
    pitch, clarity = detector.find_pitch(sine(frequency, sample_rate), sample_rate)
    assert pitch == pytest.approx(frequency, rel=0.005)
    assert clarity > 0.95


def test_mcleod_with_harmonics_reports_fundamental():
    sample_rate = 44100.0
    signal = sine(220.0, sample_rate) + 0.3 * sine(440.0, sample_rate) + 0.1 * sine(660.0, sample_rate)
    pitch, clarity = McLeodPitchDetector().find_pitch(signal, sample_rate)
    assert pitch == pytest.approx(220.0, rel=0.005)
    assert clarity > 0.9


def test_mcleod_silence():
    detector = McLeodPitchDetector()
    assert detector.find_pitch(np.zeros(2048, dtype=np.float32), 44100.0) == (0.0, 0.0)


def test_mcleod_noise_is_not_confident():
    rng = np.random.default_rng(7)
    noise = rng.normal(scale=0.1, size=2048).astype(np.float32)
    _, clarity = McLeodPitchDetector().find_pitch(noise, 44100.0)
    assert clarity < 0.92


def test_mcleod_min_frequency():
    detector = McLeodPitchDetector(min_frequency=300.0)
    assert detector.find_pitch(sine(220.0, 44100.0), 44100.0) == (0.0, 0.0)


def test_mcleod_rejects_wrong_buffer_size():
    with pytest.raises(ValueError):
        McLeodPitchDetector(buffer_size=2048).find_pitch(np.zeros(1024), 44100.0)
    with pytest.raises(ValueError):
        McLeodPitchDetector(cutoff=0.0)


def test_clamp_confidence():
    assert clamp_confidence(1.2) == 1.0
    assert clamp_confidence(-0.3) == 0.0
    assert clamp_confidence(float("nan")) == 0.0
    assert clamp_confidence(0.5) == 0.5
