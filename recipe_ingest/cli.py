"""
Recipe Ingest - Command-line front end

Ingests a recipe from a URL into structured JSON, and scales single
quantities for quick checks.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import voluptuous as vol

from .config import IngestConfig, load_config
from .exceptions import RecipeIngestError, ScrapeFailed
from .quantity import format_quantity, parse_quantity, scale_quantity
from .services.portion_scaler import scale_sections
from .services.recipe_service import RecipeIngestionPipeline

_LOGGER = logging.getLogger(__name__)


def _log_event(event_type: str, data: dict) -> None:
    _LOGGER.debug("Extraction event %s: %s", event_type, data)


def _ingest(args: argparse.Namespace, config: IngestConfig) -> int:
    pipeline = RecipeIngestionPipeline(config, event_callback=_log_event)
    try:
        recipe = pipeline.ingest(args.url)
    except ScrapeFailed as err:
        _LOGGER.error("%s", err)
        print(str(err), file=sys.stderr)
        return 1

    output = json.dumps(recipe.to_json(), indent=2, ensure_ascii=False)
    if args.output:
        _LOGGER.info("Saving structured recipe to: %s", args.output)
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output + "\n", encoding="utf-8")
    else:
        print(output)

    if args.scale is not None:
        try:
            sections = scale_sections(recipe.ingredients, args.scale, config)
        except ValueError as err:
            print(str(err), file=sys.stderr)
            return 1
        print(f"\nIngredients x{args.scale:g}:")
        for section in sections:
            if section.section_name:
                print(f"{section.section_name}:")
            for line in section.lines:
                print(f"  - {line}")
    return 0


def _scale(args: argparse.Namespace, config: IngestConfig) -> int:
    try:
        scaled = scale_quantity(parse_quantity(args.quantity), args.multiplier)
    except (RecipeIngestError, ValueError) as err:
        print(str(err), file=sys.stderr)
        return 1
    print(format_quantity(scaled, config.fraction_tolerance, config.min_display_value))
    return 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    parser = argparse.ArgumentParser(
        prog="recipe-ingest",
        description="Extract recipes from websites into structured JSON format"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", parents=[common], help="Ingest a recipe from a URL")
    ingest.add_argument("url", type=str, help="URL of the recipe website")
    ingest.add_argument(
        "--scale",
        type=float,
        help="Also print the ingredients scaled by this multiplier"
    )
    ingest.add_argument(
        "--output",
        type=Path,
        help="Write the recipe JSON to this file instead of stdout"
    )
    ingest.set_defaults(func=_ingest)

    scale = subparsers.add_parser("scale", parents=[common], help="Scale a single quantity")
    scale.add_argument("quantity", type=str, help='Quantity text, e.g. "1 1/2" or "2-3"')
    scale.add_argument("multiplier", type=float, help="Portion multiplier, e.g. 0.5")
    scale.set_defaults(func=_scale)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the recipe-ingest command."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config()
    except vol.Invalid as err:
        _LOGGER.error("Invalid configuration: %s", err)
        return 1

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
