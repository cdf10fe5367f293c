#!/usr/bin/env python3
"""Declarative rule sets from YAML files and dictionaries.

Example rule file::

    tilefilter:
      defaults:
        process_points: false
      layers:
        ignore:
          - {name: admin, match: starts_with}
      points:
        process:
          - {layer: poi, geometry_types: [point], feature_class: bar}
      kinds:
        ignore: [building]

Example:
    >>> description = load_description_file("rules.yaml")
    >>> feature_filter = build_filter(description)
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from tilefilter.core.constants import FEATURE_CATEGORIES, ConfigKey, StringMatch
from tilefilter.core.validators import validate_filter_config
from tilefilter.infrastructure.config_manager import ConfigManager
from tilefilter.infrastructure.logger import get_logger
from tilefilter.rules.description import (
    FeatureFilterDescription,
    FeatureFilterDescriptionBuilder,
)
from tilefilter.rules.filter import ComposedDataFilter, FeatureFilter, GenericFeatureFilter
from tilefilter.rules.modifier import FeatureModifier, GenericFeatureModifier

DescriptionSource = Union[FeatureFilterDescription, Mapping[str, Any]]

_DEFAULT_ARGS = {
    ConfigKey.PROCESS_LAYERS: "process_layers_default",
    ConfigKey.PROCESS_POINTS: "process_points_default",
    ConfigKey.PROCESS_LINES: "process_lines_default",
    ConfigKey.PROCESS_POLYGONS: "process_polygons_default",
}


def _rules(section: Optional[Dict[str, Any]], list_key: str) -> List[Dict[str, Any]]:
    if not section:
        return []
    return section.get(list_key) or []


def _feature_options(rule: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a feature rule mapping into builder keyword arguments."""
    options: Dict[str, Any] = {
        "match_layer": rule.get(ConfigKey.MATCH_LAYER, StringMatch.MATCH),
        "min_level": rule.get(ConfigKey.MIN_LEVEL),
        "max_level": rule.get(ConfigKey.MAX_LEVEL),
        "feature_attribute": rule.get(ConfigKey.FEATURE_ATTRIBUTE),
    }
    if ConfigKey.FEATURE_CLASSES in rule:
        options["geom_types"] = rule.get(ConfigKey.GEOMETRY_TYPES)
        options["feature_classes"] = rule[ConfigKey.FEATURE_CLASSES]
    else:
        options["geom_type"] = rule.get(ConfigKey.GEOMETRY_TYPES)
        options["feature_class"] = rule.get(ConfigKey.FEATURE_CLASS)
        options["match_class"] = rule.get(ConfigKey.MATCH_CLASS, StringMatch.MATCH)
    return options


def load_description(config: Mapping[str, Any]) -> FeatureFilterDescription:
    """Build a rule set from a declarative mapping.

    Args:
        config: Rule set, optionally wrapped in a top-level ``tilefilter`` key

    Returns:
        Immutable rule set

    Raises:
        ValidationError: If the mapping is not a valid rule set
    """
    config = dict(config)
    validate_filter_config(config)
    if ConfigKey.ROOT in config:
        config = config[ConfigKey.ROOT]

    defaults = config.get(ConfigKey.DEFAULTS) or {}
    builder = FeatureFilterDescriptionBuilder(
        **{arg: defaults[key] for key, arg in _DEFAULT_ARGS.items() if key in defaults}
    )

    layers = config.get(ConfigKey.LAYERS)
    for list_key, add_layer in (
        (ConfigKey.PROCESS, builder.process_layer),
        (ConfigKey.IGNORE, builder.ignore_layer),
    ):
        for rule in _rules(layers, list_key):
            add_layer(
                rule[ConfigKey.NAME],
                rule.get(ConfigKey.MATCH, StringMatch.MATCH),
                rule.get(ConfigKey.MIN_LEVEL),
                rule.get(ConfigKey.MAX_LEVEL),
            )

    for category in FEATURE_CATEGORIES:
        section = config.get(category)
        for list_key in (ConfigKey.PROCESS, ConfigKey.IGNORE):
            for rule in _rules(section, list_key):
                _feature_adder(builder, category, list_key, rule)(
                    rule[ConfigKey.LAYER], **_feature_options(rule)
                )

    kinds = config.get(ConfigKey.KINDS)
    builder.process_kinds(_rules(kinds, ConfigKey.PROCESS))
    builder.ignore_kinds(_rules(kinds, ConfigKey.IGNORE))

    description = builder.create_description()
    get_logger().debug("Loaded rule set", rules=description.rule_count)
    return description


def _feature_adder(
    builder: FeatureFilterDescriptionBuilder, category: str, list_key: str, rule: Dict[str, Any]
) -> Callable[..., None]:
    # points -> process_points / ignore_point, etc.
    singular = category[:-1]
    name = category if ConfigKey.FEATURE_CLASSES in rule else singular
    return getattr(builder, f"{list_key}_{name}")


def load_config(config_manager: ConfigManager) -> FeatureFilterDescription:
    """Build a rule set from the merged layers of a configuration manager.

    Raises:
        ValidationError: If the merged configuration is not a valid rule set
    """
    return load_description(config_manager.rule_set())


def load_description_file(
    file_path: str, config_manager: Optional[ConfigManager] = None
) -> FeatureFilterDescription:
    """Build a rule set from a YAML file.

    The file is loaded through a :class:`ConfigManager`, so compiled
    defaults and ``TILEFILTER_*`` environment overrides apply.

    Args:
        file_path: Path to YAML rule file
        config_manager: Manager to load into (a fresh one by default)

    Returns:
        Immutable rule set

    Raises:
        ConfigError: If the file cannot be loaded
        ValidationError: If the file is not a valid rule set
    """
    if config_manager is None:
        config_manager = ConfigManager()
    config_manager.load_file(file_path)

    with get_logger().add_context(rule_file=file_path):
        return load_config(config_manager)


def _as_description(source: DescriptionSource) -> FeatureFilterDescription:
    if isinstance(source, FeatureFilterDescription):
        return source
    return load_description(source)


def build_filter(source: DescriptionSource) -> FeatureFilter:
    """Create the early-opt-out filter for a rule set."""
    return GenericFeatureFilter(_as_description(source))


def build_modifier(source: DescriptionSource) -> FeatureModifier:
    """Create the per-feature modifier for a rule set."""
    return GenericFeatureModifier(_as_description(source))


def compose_filters(*sources: DescriptionSource) -> ComposedDataFilter:
    """Create a filter that accepts only what every rule set accepts."""
    return ComposedDataFilter(build_filter(source) for source in sources)
