"""Command-line entry point for the CHIP-8 emulator."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pychip8.audio import DEFAULT_FREQUENCY
from pychip8.system.scheduler import DEFAULT_INSTRUCTIONS_PER_TICK
from pychip8.ui.app import AppConfig, Chip8App
from pychip8.video import PALETTES


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run.py",
        description="CHIP-8 emulator",
    )
    parser.add_argument(
        "--rom",
        type=Path,
        required=True,
        help="Path to the CHIP-8 program image",
    )
    parser.add_argument(
        "--scale",
        type=int,
        default=10,
        help="Integer window scale factor (default: 10)",
    )
    parser.add_argument(
        "--fullscreen",
        action="store_true",
        help="Launch the emulator in fullscreen mode",
    )
    parser.add_argument(
        "--speed",
        type=int,
        default=DEFAULT_INSTRUCTIONS_PER_TICK,
        help=f"Instructions executed per 60 Hz tick (default: {DEFAULT_INSTRUCTIONS_PER_TICK})",
    )
    parser.add_argument(
        "--palette",
        choices=sorted(PALETTES),
        default="mono",
        help="Display colours (default: mono)",
    )
    parser.add_argument(
        "--beep",
        type=float,
        default=DEFAULT_FREQUENCY,
        help=f"Tone frequency in Hz while the sound timer runs (default: {DEFAULT_FREQUENCY:g})",
    )
    parser.add_argument(
        "--mute",
        action="store_true",
        help="Disable audio output",
    )
    parser.add_argument(
        "--timers-during-key-wait",
        action="store_true",
        help="Keep decrementing the timers while a program waits for a key",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the random number instruction",
    )
    return parser


def build_config(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        rom_path=args.rom,
        scale=args.scale,
        fullscreen=args.fullscreen,
        instructions_per_tick=args.speed,
        palette=args.palette,
        beep_frequency=args.beep,
        enable_audio=not args.mute,
        timers_during_key_wait=args.timers_during_key_wait,
        seed=args.seed,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not args.rom.exists():
        parser.error(f"ROM file not found: {args.rom}")
    if args.scale <= 0:
        parser.error("--scale must be positive")
    if args.speed <= 0:
        parser.error("--speed must be positive")

    app = Chip8App(build_config(args))
    try:
        app.create_machine()
        app.run()
    except RuntimeError as exc:
        parser.exit(1, f"run.py: {exc}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
