"""Factory for creating chromatic tuner components."""

from typing import Optional, Dict, Type

from ..logging_config import get_logger
from ..audio.audio_input import SoundDeviceInput
from ..audio.file_input import WavFileInput
from ..audio.mcleod import McLeodPitchDetector
from ..audio.pitch_detector import AubioPitchDetector
from ..audio.scheduler import FrameScheduler
from ..note_table import build_note_table
from ..sampling_loop import SamplingLoop
from ..tuning import NearestNoteResolver
from .config import DEFAULT_CONFIGS, ConfigManager
from .interfaces import IAudioSource, IFrameScheduler, IPitchDetector

logger = get_logger(__name__)


class ComponentFactory:
    """Factory for creating chromatic tuner components."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        # Register default component implementations
        self.pitch_detector_classes: Dict[str, Type[IPitchDetector]] = {
            "yin": AubioPitchDetector,
            "yinfft": AubioPitchDetector,
            "yinfast": AubioPitchDetector,
            "mcleod": McLeodPitchDetector,
        }

        self.audio_source_classes: Dict[str, Type[IAudioSource]] = {
            "microphone": SoundDeviceInput,
            "wav": WavFileInput,
        }

    def create_pitch_detector(self, method: Optional[str] = None, **kwargs) -> IPitchDetector:
        """Create a pitch detector.

        Args:
            method: Registered detector name, or None for the configured one
            **kwargs: Additional parameters to pass to the constructor

        Returns:
            Pitch detector instance

        Raises:
            ValueError: If the method is not registered
        """
        config = self.config_manager.get_config("pitch_detector")
        method = method or config.get("method", "yin")
        if method not in self.pitch_detector_classes:
            raise ValueError(f"Unknown pitch detector: {method}")

        cls = self.pitch_detector_classes[method]
        params = {key: config[key] for key in cls.CONFIG_KEYS if key in config}
        if "method" in cls.CONFIG_KEYS:
            params["method"] = method
        params.setdefault(
            "buffer_size", self.config_manager.get_config("audio_input").get("buffer_size", 2048)
        )
        params.update(kwargs)

        instance = cls(**params)
        logger.info(f"Created pitch detector: {method}")
        return instance

    def create_audio_source(self, implementation: str = "microphone", **kwargs) -> IAudioSource:
        """Create an audio source.

        Args:
            implementation: Name of the implementation to use
            **kwargs: Additional parameters to pass to the constructor

        Returns:
            Audio source instance

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.audio_source_classes:
            raise ValueError(f"Unknown audio source implementation: {implementation}")

        config = self.config_manager.get_config("audio_input")
        if implementation == "wav":
            params = {"buffer_size": config.get("buffer_size", 2048)}
        else:
            params = config
        params.update(kwargs)

        cls = self.audio_source_classes[implementation]
        instance = cls(**params)
        logger.info(f"Created audio source: {implementation}")
        return instance

    def create_resolver(
        self, reference_a4: Optional[float] = None, use_flats: Optional[bool] = None
    ) -> NearestNoteResolver:
        """Create a nearest-note resolver for the configured concert pitch.

        Standard tuning with sharps uses the built-in NOTE_TABLE.
        """
        tuner_config = self.config_manager.get_config("tuner")
        if reference_a4 is None:
            reference_a4 = tuner_config.get("reference_a4", 440.0)
        if use_flats is None:
            use_flats = tuner_config.get("use_flats", False)

        if reference_a4 == 440.0 and not use_flats:
            return NearestNoteResolver()
        return NearestNoteResolver(
            build_note_table(reference_a4=reference_a4, use_flats=use_flats)
        )

    def create_sampling_loop(
        self,
        audio_source: Optional[IAudioSource] = None,
        pitch_detector: Optional[IPitchDetector] = None,
        scheduler: Optional[IFrameScheduler] = None,
        **overrides,
    ) -> SamplingLoop:
        """Create a sampling loop wired from configuration.

        Args:
            audio_source: Audio source, or None for the configured microphone
            pitch_detector: Pitch detector, or None for the configured one
            scheduler: Frame scheduler, or None for one at the configured frame rate
            **overrides: Overrides for the 'tuner' configuration section

        Returns:
            A new, idle SamplingLoop

        Raises:
            ValueError: If an override is not a 'tuner' configuration key
        """
        tuner_config = self.config_manager.get_config("tuner")
        unknown = sorted(set(overrides) - set(DEFAULT_CONFIGS["tuner"]))
        if unknown:
            raise ValueError(f"Unknown tuner settings: {', '.join(unknown)}")
        tuner_config.update(overrides)

        audio_source = audio_source or self.create_audio_source()
        pitch_detector = pitch_detector or self.create_pitch_detector(
            buffer_size=audio_source.buffer_size
        )
        scheduler = scheduler or FrameScheduler(tuner_config["frame_rate"])

        resolver = self.create_resolver(
            tuner_config["reference_a4"], tuner_config["use_flats"]
        )

        loop = SamplingLoop(
            audio_source=audio_source,
            pitch_detector=pitch_detector,
            scheduler=scheduler,
            resolver=resolver,
            confidence_threshold=tuner_config["confidence_threshold"],
            require_positive_frequency=tuner_config["require_positive_frequency"],
        )
        logger.info("Created sampling loop")
        return loop
