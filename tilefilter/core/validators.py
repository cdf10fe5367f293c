"""
tilefilter Foundation: Input Validators.

This module provides validation functions for rule configuration: defaults,
layer rules, feature rules, kind lists and level ranges. Validation happens
once, when a rule set is built; evaluation never raises on rule content.
"""
import math
import re
from typing import Any, Dict, Optional, Tuple

from tilefilter.core.constants import (
    FEATURE_CATEGORIES,
    LOG_LEVELS,
    LOGGING_FIELDS,
    MAX_LEVEL,
    MIN_LEVEL,
    ConfigKey,
    ErrorCode,
    GeometryType,
    StringMatch,
)


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def normalize_level_range(
    min_level: Optional[float] = None, max_level: Optional[float] = None
) -> Tuple[float, float]:
    """Normalize a level range, mapping unset or NaN bounds to 0 / +inf.

    Args:
        min_level: Lower bound (inclusive)
        max_level: Upper bound (inclusive)

    Returns:
        Tuple of (min_level, max_level)

    Raises:
        ValidationError: If a bound is not numeric, negative, or the range is inverted
    """
    min_level = _normalize_level(min_level, MIN_LEVEL, ConfigKey.MIN_LEVEL)
    max_level = _normalize_level(max_level, MAX_LEVEL, ConfigKey.MAX_LEVEL)

    if min_level < 0:
        raise ValidationError(f"min_level cannot be negative: {min_level}")

    if max_level < min_level:
        raise ValidationError(f"max_level ({max_level}) is below min_level ({min_level})")

    return min_level, max_level


def _normalize_level(level: Any, default: float, name: str) -> float:
    if level is None:
        return default

    if isinstance(level, bool) or not isinstance(level, (int, float)):
        raise ValidationError(f"{name} must be numeric, got {type(level).__name__}")

    if math.isnan(level):
        return default

    return level


def validate_match(match: Any) -> StringMatch:
    """Validate a string match mode.

    Args:
        match: Match mode (StringMatch or its name)

    Returns:
        Parsed match mode

    Raises:
        ValidationError: If match mode is unknown
    """
    try:
        return StringMatch.parse(match)
    except ValueError as e:
        valid = [m.value for m in StringMatch]
        raise ValidationError(f"Invalid match mode: {match}. Must be one of {valid}") from e


def validate_geometry_type(geometry_type: Any) -> GeometryType:
    """Validate a geometry type.

    Args:
        geometry_type: GeometryType, its integer code or its name

    Returns:
        Parsed geometry type

    Raises:
        ValidationError: If geometry type is unknown
    """
    try:
        return GeometryType.parse(geometry_type)
    except ValueError as e:
        valid = [t.name.lower() for t in GeometryType]
        raise ValidationError(
            f"Invalid geometry type: {geometry_type}. Must be one of {valid}"
        ) from e


def validate_filter_string(pattern: Any) -> bool:
    """Validate a string pattern given as a plain string or a {value, match} mapping.

    Raises:
        ValidationError: If pattern is invalid
    """
    if isinstance(pattern, str):
        return True

    if not isinstance(pattern, dict):
        raise ValidationError(f"Pattern must be a string or a dictionary: {pattern}")

    if ConfigKey.VALUE not in pattern:
        raise ValidationError("Pattern must have 'value' field")

    match = validate_match(pattern.get(ConfigKey.MATCH, StringMatch.MATCH))
    if match == StringMatch.REGEX:
        try:
            re.compile(str(pattern[ConfigKey.VALUE]))
        except re.error as e:
            raise ValidationError(f"Invalid regex pattern: {e}") from e

    return True


def validate_layer_rule(rule: Dict[str, Any]) -> bool:
    """Validate layer rule configuration.

    Args:
        rule: Layer rule dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If rule is invalid
    """
    if not isinstance(rule, dict):
        raise ValidationError("Layer rule must be a dictionary")

    # Required field: name
    if ConfigKey.NAME not in rule:
        raise ValidationError("Layer rule must have 'name' field")

    if not isinstance(rule[ConfigKey.NAME], str):
        raise ValidationError(f"Layer name must be string: {rule[ConfigKey.NAME]}")

    if ConfigKey.MATCH in rule:
        validate_match(rule[ConfigKey.MATCH])

    normalize_level_range(rule.get(ConfigKey.MIN_LEVEL), rule.get(ConfigKey.MAX_LEVEL))

    return True


def validate_feature_rule(rule: Dict[str, Any]) -> bool:
    """Validate point/line/polygon rule configuration.

    Args:
        rule: Feature rule dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If rule is invalid
    """
    if not isinstance(rule, dict):
        raise ValidationError("Feature rule must be a dictionary")

    # Required field: layer
    if ConfigKey.LAYER not in rule:
        raise ValidationError("Feature rule must have 'layer' field")

    if not isinstance(rule[ConfigKey.LAYER], str):
        raise ValidationError(f"Feature rule layer must be string: {rule[ConfigKey.LAYER]}")

    for key in (ConfigKey.MATCH_LAYER, ConfigKey.MATCH_CLASS):
        if key in rule:
            validate_match(rule[key])

    if ConfigKey.FEATURE_CLASS in rule and ConfigKey.FEATURE_CLASSES in rule:
        raise ValidationError("Feature rule cannot have both 'feature_class' and 'feature_classes'")

    if ConfigKey.GEOMETRY_TYPES in rule:
        geometry_types = rule[ConfigKey.GEOMETRY_TYPES]
        if not isinstance(geometry_types, list):
            geometry_types = [geometry_types]
        for geometry_type in geometry_types:
            validate_geometry_type(geometry_type)

    if ConfigKey.FEATURE_CLASSES in rule:
        classes = rule[ConfigKey.FEATURE_CLASSES]
        if not isinstance(classes, list):
            raise ValidationError("Feature classes must be a list")
        for pattern in classes:
            validate_filter_string(pattern)

    if ConfigKey.FEATURE_ATTRIBUTE in rule:
        attribute = rule[ConfigKey.FEATURE_ATTRIBUTE]
        if not isinstance(attribute, dict):
            raise ValidationError("Feature attribute must be a dictionary")
        if ConfigKey.KEY not in attribute or ConfigKey.VALUE not in attribute:
            raise ValidationError("Feature attribute must have 'key' and 'value' fields")
        if not isinstance(attribute[ConfigKey.KEY], str):
            raise ValidationError(f"Feature attribute key must be string: {attribute[ConfigKey.KEY]}")

    normalize_level_range(rule.get(ConfigKey.MIN_LEVEL), rule.get(ConfigKey.MAX_LEVEL))

    return True


def validate_defaults(defaults: Dict[str, Any]) -> bool:
    """Validate the category default flags.

    Raises:
        ValidationError: If defaults are invalid
    """
    if not isinstance(defaults, dict):
        raise ValidationError("Defaults must be a dictionary")

    valid_fields = {
        ConfigKey.PROCESS_LAYERS,
        ConfigKey.PROCESS_POINTS,
        ConfigKey.PROCESS_LINES,
        ConfigKey.PROCESS_POLYGONS,
    }
    unknown_fields = set(defaults.keys()) - valid_fields
    if unknown_fields:
        raise ValidationError(f"Unknown defaults fields: {', '.join(sorted(unknown_fields))}")

    for key, value in defaults.items():
        if not isinstance(value, bool):
            raise ValidationError(f"Default {key} must be boolean: {value}")

    return True


def validate_logging_config(settings: Dict[str, Any]) -> bool:
    """Validate the ``logging`` section.

    ``level`` is a level name (any case) or a numeric standard level;
    ``max_bytes`` and ``backup_count`` are non-negative integers.

    Raises:
        ValidationError: If a setting is unknown or invalid
    """
    if not isinstance(settings, dict):
        raise ValidationError(f"Section '{ConfigKey.LOGGING}' must be a dictionary")

    unknown_fields = set(settings.keys()) - set(LOGGING_FIELDS)
    if unknown_fields:
        raise ValidationError(f"Unknown logging fields: {', '.join(sorted(unknown_fields))}")

    level = settings.get("level")
    if level is not None:
        if isinstance(level, str):
            known = level.upper() in LOG_LEVELS
        else:
            known = not isinstance(level, bool) and level in LOG_LEVELS.values()
        if not known:
            raise ValidationError(
                f"Invalid log level: {level}. Must be one of {list(LOG_LEVELS)}"
            )

    log_file = settings.get("file")
    if log_file is not None and not isinstance(log_file, str):
        raise ValidationError(f"Log file must be a string: {log_file}")

    for key in ("max_bytes", "backup_count"):
        value = settings.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(f"Logging {key} must be a non-negative integer: {value}")

    return True


def _validate_rule_lists(section: Any, name: str, validator) -> None:
    if not isinstance(section, dict):
        raise ValidationError(f"Section '{name}' must be a dictionary")

    unknown_fields = set(section.keys()) - {ConfigKey.PROCESS, ConfigKey.IGNORE}
    if unknown_fields:
        raise ValidationError(
            f"Unknown fields in '{name}': {', '.join(sorted(unknown_fields))}"
        )

    for list_key in (ConfigKey.PROCESS, ConfigKey.IGNORE):
        rules = section.get(list_key) or []
        if not isinstance(rules, list):
            raise ValidationError(f"'{name}.{list_key}' must be a list")

        for i, rule in enumerate(rules):
            try:
                validator(rule)
            except ValidationError as e:
                raise ValidationError(f"Invalid rule at {name}.{list_key}[{i}]: {e}") from e


def validate_filter_config(config: Dict[str, Any]) -> bool:
    """Validate a declarative rule set.

    Accepts either the bare rule set or one wrapped in a top-level
    ``tilefilter`` key.

    Args:
        config: Rule set dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    if ConfigKey.ROOT in config:
        config = config[ConfigKey.ROOT]
        if not isinstance(config, dict):
            raise ValidationError(f"'{ConfigKey.ROOT}' must be a dictionary")

    if ConfigKey.DEFAULTS in config:
        validate_defaults(config[ConfigKey.DEFAULTS])

    if ConfigKey.LAYERS in config:
        _validate_rule_lists(config[ConfigKey.LAYERS], ConfigKey.LAYERS, validate_layer_rule)

    for category in FEATURE_CATEGORIES:
        if category in config:
            _validate_rule_lists(config[category], category, validate_feature_rule)

    if ConfigKey.LOGGING in config:
        validate_logging_config(config[ConfigKey.LOGGING])

    if ConfigKey.KINDS in config:
        kinds = config[ConfigKey.KINDS]
        if not isinstance(kinds, dict):
            raise ValidationError("Section 'kinds' must be a dictionary")
        for list_key in (ConfigKey.PROCESS, ConfigKey.IGNORE):
            names = kinds.get(list_key) or []
            if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
                raise ValidationError(f"'kinds.{list_key}' must be a list of strings")

    return True
