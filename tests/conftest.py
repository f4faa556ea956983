import numpy as np
import pytest
import soundfile as sf


@pytest.fixture
def tone_file(tmp_path):
    """Factory that writes a sine tone to a WAV file and returns its path."""

    def _write(frequency=440.0, sample_rate=44100, seconds=1.0, channels=1, name="tone.wav"):
        t = np.arange(int(sample_rate * seconds)) / sample_rate
        mono = 0.5 * np.sin(2 * np.pi * frequency * t)
        data = np.column_stack([mono] * channels) if channels > 1 else mono
        path = tmp_path / name
        sf.write(str(path), data, sample_rate, subtype="FLOAT")
        return str(path)

    return _write
