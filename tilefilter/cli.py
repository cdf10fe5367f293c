#!/usr/bin/env python3
"""Command-line interface for tilefilter.

This module provides a CLI for checking rule files and asking them questions:
- Rule file validation
- Layer, feature and kind decisions of the early filter
- Feature modifier decisions for a given set of properties

Example:
    $ tilefilter layer -c rules.yaml water 12
    process
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

import yaml

from tilefilter.core.constants import ConfigKey, TILEFILTER_VERSION
from tilefilter.core.validators import ValidationError, validate_geometry_type
from tilefilter.infrastructure.config_manager import ConfigError, ConfigManager, ConfigSource
from tilefilter.infrastructure.logger import Logger, configure_logging
from tilefilter.rules.description import FeatureFilterDescription
from tilefilter.rules.env import MapEnv
from tilefilter.rules.filter import GenericFeatureFilter
from tilefilter.rules.loader import load_config
from tilefilter.rules.modifier import GenericFeatureModifier

DESCRIPTION = "tilefilter - Declarative layer and feature filtering for vector tiles"

CATEGORIES = ("point", "line", "polygon")


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        required=True,
        help="Rule file path (YAML format)",
    )
    common.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser = argparse.ArgumentParser(
        prog="tilefilter",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check a rule file
  tilefilter validate -c rules.yaml

  # Would layer "water" be decoded at level 12?
  tilefilter layer -c rules.yaml water 12

  # Would a point in layer "poi" be decoded at level 15?
  tilefilter feature -c rules.yaml point poi point 15

  # Would a closed road still be styled?
  tilefilter modify -c rules.yaml line road state=closed class=primary
        """,
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {TILEFILTER_VERSION}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("validate", parents=[common], help="Validate a rule file")

    layer = commands.add_parser("layer", parents=[common], help="Decide on a layer")
    layer.add_argument("layer", help="Layer name")
    layer.add_argument("level", type=float, help="Tile level")

    feature = commands.add_parser("feature", parents=[common], help="Decide on a feature")
    feature.add_argument("category", choices=CATEGORIES, help="Feature category")
    feature.add_argument("layer", help="Layer name")
    feature.add_argument("geometry_type", help="Geometry type (point, linestring, polygon)")
    feature.add_argument("level", type=float, help="Tile level")

    kind = commands.add_parser("kind", parents=[common], help="Decide on kind labels")
    kind.add_argument("kinds", nargs="+", help="Kind labels")

    modify = commands.add_parser(
        "modify", parents=[common], help="Decide on a feature with resolved properties"
    )
    modify.add_argument("category", choices=CATEGORIES, help="Feature category")
    modify.add_argument("layer", help="Layer name")
    modify.add_argument(
        "properties", nargs="*", metavar="KEY=VALUE", help="Feature properties"
    )

    return parser.parse_args(args)


def parse_properties(items: List[str]) -> Dict[str, Any]:
    """
    Parse KEY=VALUE pairs into a property dictionary.

    Values are read as YAML scalars, so ``lanes=2`` yields an integer.

    Args:
        items: KEY=VALUE strings

    Returns:
        Property dictionary

    Raises:
        CLIError: If an item is not a KEY=VALUE pair
    """
    properties: Dict[str, Any] = {}

    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise CLIError(f"Invalid property (expected KEY=VALUE): {item}")
        try:
            properties[key] = yaml.safe_load(value) if value else value
        except yaml.YAMLError:
            properties[key] = value

    return properties


def setup_logging(args: argparse.Namespace, config: ConfigManager) -> Logger:
    """
    Setup logging based on arguments and configuration.

    Args:
        args: Parsed arguments namespace
        config: Configuration manager

    Returns:
        Configured logger instance

    Raises:
        ValidationError: If the logging settings are invalid
    """
    if args.debug:
        config.set(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}.level", "DEBUG", ConfigSource.CLI_ARGS)

    return configure_logging(config.logging_settings())


def load_rules(args: argparse.Namespace) -> FeatureFilterDescription:
    """
    Load the rule file named on the command line.

    Args:
        args: Parsed arguments namespace

    Returns:
        Rule set

    Raises:
        CLIError: If the rule file cannot be loaded or is invalid
    """
    config = ConfigManager()

    try:
        config.load_file(args.config)
    except ConfigError as e:
        raise CLIError(e.message) from e

    try:
        logger = setup_logging(args, config)
    except ValidationError as e:
        raise CLIError(f"Invalid logging settings in {args.config}: {e}") from e

    with logger.add_context(rule_file=args.config):
        try:
            description = load_config(config)
        except ValidationError as e:
            raise CLIError(f"Invalid rule file {args.config}: {e}") from e

        logger.debug("Loaded rule file", rules=description.rule_count)
    return description


def run_command(args: argparse.Namespace, description: FeatureFilterDescription) -> bool:
    """
    Evaluate the requested decision.

    Args:
        args: Parsed arguments namespace
        description: Rule set

    Returns:
        True if the layer/feature/kind would be processed
    """
    if args.command == "validate":
        return True

    if args.command == "modify":
        modifier = GenericFeatureModifier(description)
        env = MapEnv(parse_properties(args.properties))
        return getattr(modifier, f"do_process_{args.category}_feature")(args.layer, env)

    feature_filter = GenericFeatureFilter(description)

    if args.command == "layer":
        return feature_filter.wants_layer(args.layer, args.level)

    if args.command == "kind":
        kinds = args.kinds[0] if len(args.kinds) == 1 else args.kinds
        return feature_filter.wants_kind(kinds)

    try:
        geometry_type = validate_geometry_type(args.geometry_type)
    except ValidationError as e:
        raise CLIError(str(e)) from e

    wants = getattr(feature_filter, f"wants_{args.category}_feature")
    return wants(args.layer, geometry_type, args.level)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Prints ``process`` or ``ignore`` for decision commands, ``ok`` for
    ``validate``.

    Returns:
        Exit status
    """
    try:
        args = parse_arguments(argv)
        description = load_rules(args)
        result = run_command(args, description)

        if args.command == "validate":
            print("ok")
        else:
            print("process" if result else "ignore")
        return 0

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
