from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import ConfigError, load_config
from .gallery import EXAMPLES, EXAMPLE_NAMES, run_gallery
from .logging_config import LEVELS, configure

log = logging.getLogger("mapgallery.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapgallery",
        description="Build the interactive map gallery (folium + plotly) as HTML files",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--points", help="Point CSV (name, long, lat)")
    parser.add_argument("--boundaries", help="Boundary shapefile")
    parser.add_argument("--output-dir", help="Directory for the HTML widgets")
    parser.add_argument(
        "--only", action="append", choices=EXAMPLE_NAMES, metavar="NAME",
        help="Run only this example (repeatable)",
    )
    parser.add_argument("--list", action="store_true", help="List the examples and exit")
    parser.add_argument("--keep-going", action="store_true", help="Log failing examples and continue")
    parser.add_argument("--refresh", action="store_true", help="Re-download remote tables")
    parser.add_argument("--no-index", action="store_true", help="Do not write index.html")
    parser.add_argument("--log-level", type=str.upper, choices=LEVELS, help="Console log level")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list:
        for ex in EXAMPLES:
            print(f"{ex.name:<18} {ex.library:<7} {ex.title}")
        return 0

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        configure(args.log_level or "INFO")
        log.error("Bad configuration – %s", exc)
        return 2

    configure(args.log_level or config.log_level.value)

    # -- CLI overrides -----------------------------------------------------
    if args.points:
        config.paths.points_csv = Path(args.points)
    if args.boundaries:
        config.paths.boundaries = Path(args.boundaries)
    if args.output_dir:
        config.paths.output_dir = Path(args.output_dir)

    log.info("Output → %s", config.paths.output_dir)
    try:
        result = run_gallery(
            config,
            only=args.only,
            keep_going=args.keep_going,
            write_index=not args.no_index,
            refresh=args.refresh,
        )
    except Exception as exc:  # noqa: BLE001
        log.error("Gallery run failed – %s", exc, exc_info=True)
        return 1
    return 0 if result.ok else 1
