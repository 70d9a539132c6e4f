"""Command-line entry point: generate a galaxy or inspect a save."""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path

from .constants import DEFAULT_SEED, DEFAULT_SIZE, DEFAULT_STAR_COUNT, SAVE_KEY
from .exceptions import StarweaveError
from .log import setup_logging
from .models.exploration import ExplorationState
from .models.galaxy import Galaxy, GalaxyConfig
from .models.save import GalaxyPersistence
from .models.stars import StarType
from .models.storage import FileStorage

logger = logging.getLogger(__name__)


def _print_progress(percent: int, message: str) -> None:
    print(f"  [{percent:3d}%] {message}", file=sys.stderr)


def cmd_generate(args: argparse.Namespace) -> int:
    config = GalaxyConfig(seed=args.seed, star_count=args.stars, size=args.size)
    galaxy = Galaxy(config, _print_progress if args.progress else None)

    print(f"Seed:     {config.seed}")
    print(f"Stars:    {len(galaxy.stars)}")
    print(f"Systems:  {len(galaxy.systems)}")
    print(f"Planets:  {galaxy.planet_count}")
    counts = Counter(s.star_type for s in galaxy.stars)
    for star_type in StarType:
        if counts[star_type]:
            print(f"  {star_type.value:>2}: {counts[star_type]}")

    if args.save is not None:
        storage = FileStorage(args.save)
        GalaxyPersistence(storage, key=args.key).save(galaxy, ExplorationState())
        print(f"Saved to {storage.path_for(args.key)}")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    persistence = GalaxyPersistence(FileStorage(args.dir), key=args.key)
    loaded = persistence.load()
    if loaded is None:
        print("No usable save found.")
        return 1

    state = loaded.exploration
    print(f"Version:            {loaded.version}")
    print(f"Seed:               {loaded.config.seed}")
    print(f"Stars / systems:    {len(loaded.stars)} / {len(loaded.systems)}")
    print(f"Current system:     {state.current_system_id or '-'}")
    print(f"Explored systems:   {len(state.explored_systems)}")
    print(f"Discovered planets: {len(state.discovered_planets)}")
    print(f"Distance traveled:  {state.distance_traveled:.1f} ly")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="starweave", description="Deterministic galaxy generator")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a galaxy and print a summary")
    gen.add_argument("--seed", type=int, default=DEFAULT_SEED)
    gen.add_argument("--stars", type=int, default=DEFAULT_STAR_COUNT)
    gen.add_argument("--size", type=float, default=DEFAULT_SIZE, help="Galaxy radius in light years")
    gen.add_argument("--save", type=Path, default=None, metavar="DIR", help="Write a snapshot into DIR")
    gen.add_argument("--key", default=SAVE_KEY)
    gen.add_argument("--progress", action="store_true", help="Report generation progress")
    gen.set_defaults(func=cmd_generate)

    info = sub.add_parser("info", help="Summarize a saved galaxy")
    info.add_argument("--dir", type=Path, default=None, help="Save directory (default: user data dir)")
    info.add_argument("--key", default=SAVE_KEY)
    info.set_defaults(func=cmd_info)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except StarweaveError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
