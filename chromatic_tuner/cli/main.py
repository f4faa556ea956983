"""Main entry point for the chromatic tuner CLI."""

import sys
import time
import argparse
from typing import List, Optional

import sounddevice as sd

from ..logging_config import get_logger, setup_logging
from ..audio.audio_input import list_input_devices
from ..audio.file_input import WavFileInput
from ..core.config import ConfigManager
from ..core.factory import ComponentFactory
from ..note_types import TunerReading
from ..presentation import TunerDisplay
from ..sampling_loop import SamplingLoop

logger = get_logger(__name__)


def _add_tuning_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Confidence a pitch estimate must exceed (default: from config, 0.92)",
    )
    parser.add_argument(
        "--allow-nonpositive",
        action="store_true",
        help="Accept estimates on confidence alone, without the positive-frequency check",
    )
    parser.add_argument(
        "--detector",
        choices=["yin", "yinfft", "yinfast", "mcleod"],
        default=None,
        help="Pitch detection method (default: from config, yin)",
    )
    parser.add_argument("--a4", type=float, default=None, help="Concert pitch of A4 in Hz")
    parser.add_argument("--fps", type=float, default=None, help="Sampling cycles per second")
    parser.add_argument(
        "--duration", type=float, default=None, help="Stop after this many seconds"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(description="Chromatic tuner")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Configuration directory (default: ~/.config/chromatic_tuner)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    listen_parser = subparsers.add_parser("listen", help="Tune from the microphone")
    listen_parser.add_argument("--device", type=int, default=None, help="Audio input device ID")
    _add_tuning_arguments(listen_parser)

    file_parser = subparsers.add_parser("file", help="Tune from a sound file")
    file_parser.add_argument("path", help="Path to a WAV (or other soundfile) file")
    file_parser.add_argument("--loop", action="store_true", help="Loop the file")
    file_parser.add_argument("--gain", type=float, default=1.0, help="Input gain")
    _add_tuning_arguments(file_parser)

    subparsers.add_parser("devices", help="List audio input devices")

    return parser


def print_devices() -> None:
    """Print the audio devices that can record."""
    print("Available audio input devices:")
    print("-" * 70)
    for device in list_input_devices():
        print(f"Device {device['index']}: {device['name']}")
        print(f"  Max input channels: {device['max_input_channels']}")
        print(f"  Default sample rate: {device['default_samplerate']} Hz")
    print(f"Default input device: {sd.default.device[0]}")


def build_loop(args: argparse.Namespace, factory: ComponentFactory) -> SamplingLoop:
    """Create the sampling loop described by the parsed arguments."""
    overrides = {}
    if args.threshold is not None:
        overrides["confidence_threshold"] = args.threshold
    if args.allow_nonpositive:
        overrides["require_positive_frequency"] = False
    if args.a4 is not None:
        overrides["reference_a4"] = args.a4
    if args.fps is not None:
        overrides["frame_rate"] = args.fps

    if args.command == "file":
        audio_source = factory.create_audio_source(
            "wav", file_path=args.path, loop=args.loop, gain=args.gain
        )
    else:
        audio_source = factory.create_audio_source("microphone", device_id=args.device)

    pitch_detector = factory.create_pitch_detector(
        args.detector, buffer_size=audio_source.buffer_size
    )
    return factory.create_sampling_loop(
        audio_source=audio_source, pitch_detector=pitch_detector, **overrides
    )


def run_tuner(loop: SamplingLoop, duration: Optional[float], in_tune_cents: float) -> int:
    """Start the loop and print a meter line whenever the display changes.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    last_line = None

    def on_reading(reading: TunerReading) -> None:
        nonlocal last_line
        line = TunerDisplay.from_reading(reading, in_tune_cents).render_line()
        if line != last_line:
            print(f"\r{line}", end="", flush=True)
            last_line = line

    loop.events.on_reading(on_reading)
    if not loop.start():
        print(f"Could not start the tuner: {loop.error}", file=sys.stderr)
        return 1

    source = loop.audio_source
    deadline = time.monotonic() + duration if duration else None
    try:
        while deadline is None or time.monotonic() < deadline:
            if isinstance(source, WavFileInput) and source.finished:
                break
            time.sleep(0.05)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.stop()
        print()
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, or None to use sys.argv

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)
    setup_logging(level="DEBUG" if parsed_args.debug else None)

    if parsed_args.command == "devices":
        print_devices()
        return 0
    if parsed_args.command not in ("listen", "file"):
        parser.print_help()
        return 1

    config_manager = ConfigManager(parsed_args.config_dir)
    factory = ComponentFactory(config_manager)
    loop = build_loop(parsed_args, factory)
    in_tune_cents = config_manager.get_config("tuner").get("in_tune_cents", 5.0)
    return run_tuner(loop, parsed_args.duration, in_tune_cents)


if __name__ == "__main__":
    sys.exit(main())
