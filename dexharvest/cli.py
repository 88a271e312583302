"""
dexharvest unified CLI.

Each stage reads the previous stage's JSON output from --data-dir and
writes its own; run them in order, or use ``all``.

Usage
-----
dexharvest base                       # data/base.json
dexharvest moves                      # data/moves.json
dexharvest pokemon                    # data/pokemon.json + sprites/pokemon/
dexharvest types                      # data/types.json + sprites/types/
dexharvest all                        # the four stages in order

dexharvest --locale en --workers 4 pokemon
dexharvest --no-sprites types

Zero-argument equivalents are installed as dexharvest-base,
dexharvest-moves, dexharvest-pokemon and dexharvest-types.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, Optional, Sequence

import requests

from dexharvest.configs.constants import Constants
from dexharvest.errors import HarvestError
from dexharvest.scraper import (
    BaseIndexScraper,
    HarvestConfig,
    MoveScraper,
    PokemonScraper,
    TypeScraper,
)
from dexharvest.utils.logger import setup_logging

LOGGER = logging.getLogger("dexharvest")

# Dependency order: later stages consume earlier outputs
STAGES = {
    "base": BaseIndexScraper,
    "moves": MoveScraper,
    "pokemon": PokemonScraper,
    "types": TypeScraper,
}


# ---------------------------------------------------------------------------
# Stage runners
# ---------------------------------------------------------------------------


def config_from_args(args: argparse.Namespace) -> HarvestConfig:
    return HarvestConfig(
        base_url=args.base_url,
        icon_base_url=args.icon_base_url,
        locale=args.locale,
        data_dir=args.data_dir,
        sprites_dir=args.sprites_dir,
        calls_per_second=args.rps,
        timeout=args.timeout,
        workers=args.workers,
        download_sprites=not args.no_sprites,
    )


def run_stage(
    stage: str,
    config: HarvestConfig,
    session: Optional[requests.Session] = None,
) -> Any:
    """Run one stage end to end and return the document it wrote."""
    scraper = STAGES[stage](config=config, session=session)
    LOGGER.info(f"Running stage '{stage}' → {scraper.output_path}")
    return scraper.run()


def cmd_stage(args: argparse.Namespace) -> None:
    run_stage(args.stage, config_from_args(args))


def cmd_all(args: argparse.Namespace) -> None:
    config = config_from_args(args)
    for stage in STAGES:
        run_stage(stage, config)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    root = argparse.ArgumentParser(
        prog="dexharvest",
        description="Harvest PokeAPI data into local JSON files and sprites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    root.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # ---- shared options ----
    root.add_argument("--data-dir", default=Constants.DATA_DIR, metavar="DIR")
    root.add_argument("--sprites-dir", default=Constants.SPRITES_DIR, metavar="DIR")
    root.add_argument("--base-url", default=Constants.POKEAPI_BASE_URL, metavar="URL")
    root.add_argument("--icon-base-url", default=Constants.TYPE_ICON_BASE_URL, metavar="URL")
    root.add_argument("--locale", default=Constants.LOCALE, help="Language for display names")
    root.add_argument(
        "--rps",
        type=float,
        default=Constants.CALLS_PER_SECOND,
        help="API requests per second — keep it low, PokeAPI is a free service",
    )
    root.add_argument("--timeout", type=int, default=30, help="Per-request timeout (s)")
    root.add_argument(
        "--workers",
        type=int,
        default=1,
        help=f"Concurrent per-item fetches (capped at {Constants.MAX_WORKERS})",
    )
    root.add_argument(
        "--no-sprites",
        action="store_true",
        help="Record sprite paths without downloading any image",
    )

    subparsers = root.add_subparsers(dest="command", required=True)

    for stage, help_text in (
        ("base", "Build the Pokémon / move / type name index"),
        ("moves", "Fetch move details"),
        ("pokemon", "Fetch Pokémon details and sprites"),
        ("types", "Fetch type details and icons"),
    ):
        sub = subparsers.add_parser(stage, help=help_text)
        sub.set_defaults(func=cmd_stage, stage=stage)

    subparsers.add_parser("all", help="Run every stage in order").set_defaults(func=cmd_all)

    return root


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        args.func(args)
    except KeyboardInterrupt:
        LOGGER.error("Interrupted")
        return 130
    except (HarvestError, OSError):
        LOGGER.exception("Harvest failed")
        return 1
    return 0


def base_index_main() -> int:
    return main(["base"])


def moves_main() -> int:
    return main(["moves"])


def pokemon_main() -> int:
    return main(["pokemon"])


def types_main() -> int:
    return main(["types"])


if __name__ == "__main__":
    raise SystemExit(main())
