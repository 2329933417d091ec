import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List

from .animation_driver import AnimationDriver
from .atlas_builder import build_atlas, save_atlas
from .config import DEFAULT_CONFIG, config_from_env, parse_fps
from .errors import DecodeError, FetchError
from .fetch import read_source
from .render_target import ImageRenderTarget


def parse_arguments(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Decode an animated GIF and tile its frames into a single horizontal "
            "texture atlas for offset-based playback."
        )
    )
    parser.add_argument(
        "input",
        type=str,
        help="Path or http(s) URL of an animated GIF.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("atlas.png"),
        help="Output PNG path (defaults to atlas.png in the current directory).",
    )
    parser.add_argument(
        "--fps",
        type=str,
        default=None,
        help=f"Playback frame rate (default: GIF_ATLAS_FPS or {DEFAULT_CONFIG.frames_per_second}).",
    )
    parser.add_argument(
        "--source-timing",
        action="store_true",
        help="Derive the frame rate from the GIF's own frame durations.",
    )
    parser.add_argument(
        "--max-width",
        type=int,
        default=None,
        help=f"Maximum atlas width in pixels (default: {DEFAULT_CONFIG.max_atlas_width}).",
    )
    parser.add_argument(
        "--preview-steps",
        type=int,
        default=0,
        help="Print the tile offsets for this many playback steps.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args(argv)


def resolve_unique_path(path: Path) -> Path:
    if not path.exists():
        return path
    stem = path.stem
    suffix = path.suffix
    index = 1
    while True:
        candidate = path.with_name(f"{stem}-{index}{suffix}")
        if not candidate.exists():
            return candidate
        index += 1


def preview_offsets(driver: AnimationDriver, steps: int) -> List[float]:
    """Tick the driver one frame period at a time and collect the offsets."""
    offsets: List[float] = []
    for _ in range(steps):
        driver.tick(driver.time_step)
        offsets.append(driver.current_offset())
    return offsets


def main(argv: Iterable[str]) -> int:
    try:
        args = parse_arguments(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )
        config = config_from_env()
        if args.fps is not None:
            config = replace(config, frames_per_second=parse_fps(args.fps))
        if args.max_width is not None:
            if args.max_width <= 0:
                raise ValueError("--max-width must be positive")
            config = replace(config, max_atlas_width=args.max_width)
        if args.source_timing:
            config = replace(config, use_source_timing=True)
        if args.preview_steps < 0:
            raise ValueError("--preview-steps must not be negative")

        data = read_source(args.input, config.fetch_timeout)
        result = build_atlas(data, config)
        fps = result.source_fps if config.use_source_timing else config.frames_per_second

        final_output = save_atlas(result, resolve_unique_path(args.output))
        if final_output != args.output:
            print(
                "Existing file detected. Saved new atlas as"
                f" {final_output} instead."
            )
        print(
            f"Created {result.atlas.width}x{result.atlas.height} atlas with "
            f"{result.frame_count} frames ({result.frame_width}x{result.frame_height}) "
            f"at {final_output}"
        )
        print(f"Tile scale: {result.tile_scale:.4f}, playback: {fps} fps")

        if args.preview_steps:
            driver = AnimationDriver.from_result(result, fps, args.input)
            driver.register_target(ImageRenderTarget("cli"))
            offsets = preview_offsets(driver, args.preview_steps)
            print("Offsets: " + ", ".join(f"{offset:g}" for offset in offsets))
        return 0
    except FileNotFoundError as not_found_err:
        print(f"Error: {not_found_err}", file=sys.stderr)
    except FetchError as fetch_err:
        print(f"Error: {fetch_err}", file=sys.stderr)
    except DecodeError as decode_err:
        print(f"Error: {decode_err}", file=sys.stderr)
    except ValueError as value_err:
        print(f"Error: {value_err}", file=sys.stderr)
    except Exception as unexpected_err:  # noqa: BLE001
        print(f"Unexpected error: {unexpected_err}", file=sys.stderr)
    return 1


def run() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
