"""
CLI entry point for the spectrascope visualizer.

Usage:
    spectrascope <audio_file> [options]
    python -m spectrascope <audio_file> [options]
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from spectrascope.audio.graph import GraphAlreadyConnected
from spectrascope.audio.media import InvalidAudioFile, validate_audio_file
from spectrascope.config import PROFILES, VisualizerConfig, load_config
from spectrascope.core.themes import THEMES, theme_ids


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spectrascope",
        description="Real-time audio-reactive spectrum visualizer",
    )

    parser.add_argument(
        "audio",
        type=Path,
        nargs="?",
        default=None,
        help="Input audio file (wav, mp3, flac, ogg; up to 30 MB)",
    )

    # Look
    parser.add_argument(
        "-m", "--mode", type=str, default=None,
        choices=["bars", "circular", "wave"],
        help="Visualization layout (default: bars)",
    )
    parser.add_argument(
        "-t", "--theme", type=str, default=None,
        choices=theme_ids(),
        help="Color theme (default: blue)",
    )
    parser.add_argument(
        "-s", "--sensitivity", type=float, default=None,
        help="Amplitude multiplier (default: per-mode)",
    )
    parser.add_argument(
        "--volume", type=float, default=None,
        help="Initial playback volume in [0, 1] (default: 0.7)",
    )
    parser.add_argument("--no-glow", action="store_true", help="Disable glow")
    parser.add_argument("--no-background", action="store_true", help="Disable animated background")
    parser.add_argument("--no-hud", action="store_true", help="Hide the transport overlay")

    # Analysis
    parser.add_argument(
        "--fft-size", type=int, default=None,
        help="Analyser FFT size, a power of two in [32, 32768] (default: 1024)",
    )

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default=None,
        choices=list(PROFILES),
        help="Window profile (low: 640x360 30fps, medium: 960x540 60fps, high: 1080p 60fps)",
    )
    parser.add_argument("--width", type=int, default=None, help="Window width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Window height (overrides profile)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")
    parser.add_argument(
        "--pixel-ratio", type=float, default=None,
        help="Device pixel ratio for the backing store (default: 1.0)",
    )

    # Config
    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON config file; command-line flags override its values",
    )

    # Headless
    parser.add_argument("--headless", action="store_true", help="Render offscreen without audio output")
    parser.add_argument(
        "--frames", type=int, default=120,
        help="Frames to render with --headless (default: 120)",
    )
    parser.add_argument(
        "--snapshot", type=Path, default=None,
        help="Save the last headless frame as PNG",
    )

    parser.add_argument("--list-themes", action="store_true", help="List color themes and exit")
    return parser


def resolve_config(args: argparse.Namespace) -> VisualizerConfig:
    """Merge config file, profile and command-line flags, in that order."""
    config = load_config(args.config) if args.config is not None else VisualizerConfig()

    overrides = {}
    if args.profile is not None:
        overrides.update(PROFILES[args.profile])

    flags = {
        "mode": args.mode,
        "theme": args.theme,
        "sensitivity": args.sensitivity,
        "volume": args.volume,
        "fft_size": args.fft_size,
        "width": args.width,
        "height": args.height,
        "fps": args.fps,
        "pixel_ratio": args.pixel_ratio,
    }
    overrides.update({k: v for k, v in flags.items() if v is not None})
    if args.no_glow:
        overrides["glow_enabled"] = False
    if args.no_background:
        overrides["background"] = False
    if args.no_hud:
        overrides["show_hud"] = False

    return replace(config, **overrides).validate()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_themes:
        for theme_id in theme_ids():
            theme = THEMES[theme_id]
            kind = "hue sweep" if theme.hue_sweep else "palette"
            print(f"  {theme_id:<8} {theme.name} ({kind})")
        return 0

    try:
        config = resolve_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.audio is not None:
        try:
            validate_audio_file(args.audio)
        except InvalidAudioFile as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    elif not args.headless:
        print("No audio file given; showing the placeholder.")

    print(f"Mode: {config.mode}, Theme: {config.theme}, FFT size: {config.fft_size}")

    try:
        if args.headless:
            from spectrascope.app import run_headless

            run_headless(config, args.audio, frames=args.frames, snapshot=args.snapshot)
        else:
            from spectrascope.app import VisualizerApp

            VisualizerApp(config, args.audio).run()
    except (GraphAlreadyConnected, InvalidAudioFile) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
