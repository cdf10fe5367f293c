#!/usr/bin/env python3
"""Tests for rule configuration validators."""

import math

import pytest

from tilefilter.core.constants import ErrorCode, GeometryType, StringMatch
from tilefilter.core.validators import (
    ValidationError,
    normalize_level_range,
    validate_defaults,
    validate_feature_rule,
    validate_filter_config,
    validate_filter_string,
    validate_geometry_type,
    validate_layer_rule,
    validate_logging_config,
    validate_match,
)


class TestValidationError:
    """Tests for ValidationError."""

    def test_default_code(self):
        """Validation errors default to INVALID_INPUT."""
        error = ValidationError("bad")

        assert str(error) == "bad"
        assert error.error_code == ErrorCode.INVALID_INPUT

    def test_custom_code(self):
        """A specific error code can be attached."""
        assert ValidationError("x", ErrorCode.NOT_FOUND).error_code == ErrorCode.NOT_FOUND


class TestNormalizeLevelRange:
    """Tests for normalize_level_range."""

    @pytest.mark.parametrize(
        "given,expected",
        [
            ((None, None), (0, math.inf)),
            ((math.nan, math.nan), (0, math.inf)),
            ((3, None), (3, math.inf)),
            ((None, 12), (0, 12)),
            ((4, 4), (4, 4)),
            ((1.5, 9.5), (1.5, 9.5)),
        ],
    )
    def test_normalize(self, given, expected):
        """Unset and NaN bounds fall back to the full range."""
        assert normalize_level_range(*given) == expected

    @pytest.mark.parametrize(
        "given",
        [(-1, None), (5, 4), ("3", None), (None, "high"), (True, None)],
    )
    def test_invalid(self, given):
        """Negative, inverted and non-numeric ranges are rejected."""
        with pytest.raises(ValidationError):
            normalize_level_range(*given)


class TestValidateEnums:
    """Tests for match mode and geometry type validation."""

    def test_match(self):
        """Valid modes are parsed."""
        assert validate_match("glob") == StringMatch.GLOB
        assert validate_match(StringMatch.ANY) == StringMatch.ANY

    def test_match_invalid(self):
        """Invalid modes list the valid ones."""
        with pytest.raises(ValidationError, match="starts_with"):
            validate_match("fuzzy")

    def test_geometry_type(self):
        """Valid geometry types are parsed."""
        assert validate_geometry_type("line") == GeometryType.LINESTRING

    def test_geometry_type_invalid(self):
        """Invalid geometry types are rejected."""
        with pytest.raises(ValidationError):
            validate_geometry_type("circle")


class TestValidateFilterString:
    """Tests for validate_filter_string."""

    def test_valid(self):
        """Strings and {value, match} mappings are valid."""
        assert validate_filter_string("park") is True
        assert validate_filter_string({"value": "wood", "match": "starts_with"}) is True
        assert validate_filter_string({"value": "^a.*b$", "match": "regex"}) is True

    @pytest.mark.parametrize(
        "pattern",
        [
            3,
            {"match": "any"},
            {"value": "x", "match": "fuzzy"},
            {"value": "(unclosed", "match": "regex"},
        ],
    )
    def test_invalid(self, pattern):
        """Bad patterns are rejected."""
        with pytest.raises(ValidationError):
            validate_filter_string(pattern)


class TestValidateLayerRule:
    """Tests for validate_layer_rule."""

    def test_valid(self):
        """Complete layer rules are valid."""
        assert validate_layer_rule({"name": "water", "match": "any", "min_level": 2}) is True

    @pytest.mark.parametrize(
        "rule",
        [
            "water",
            {},
            {"name": 3},
            {"name": "water", "match": "fuzzy"},
            {"name": "water", "min_level": -2},
        ],
    )
    def test_invalid(self, rule):
        """Incomplete or malformed layer rules are rejected."""
        with pytest.raises(ValidationError):
            validate_layer_rule(rule)


class TestValidateFeatureRule:
    """Tests for validate_feature_rule."""

    def test_valid(self):
        """Complete feature rules are valid."""
        rule = {
            "layer": "road",
            "geometry_types": "line",
            "feature_class": "primary",
            "match_class": "starts_with",
            "feature_attribute": {"key": "state", "value": "closed"},
            "min_level": 10,
        }
        assert validate_feature_rule(rule) is True

    @pytest.mark.parametrize(
        "rule",
        [
            [],
            {"geometry_types": ["point"]},
            {"layer": None},
            {"layer": "poi", "match_layer": "fuzzy"},
            {"layer": "poi", "geometry_types": ["point", "circle"]},
            {"layer": "poi", "feature_class": "a", "feature_classes": ["b"]},
            {"layer": "poi", "feature_classes": "bar"},
            {"layer": "poi", "feature_attribute": "state=closed"},
            {"layer": "poi", "feature_attribute": {"key": 1, "value": 2}},
            {"layer": "poi", "min_level": 8, "max_level": 2},
        ],
    )
    def test_invalid(self, rule):
        """Incomplete or malformed feature rules are rejected."""
        with pytest.raises(ValidationError):
            validate_feature_rule(rule)


class TestValidateDefaults:
    """Tests for validate_defaults."""

    def test_valid(self):
        """Known boolean flags are valid."""
        assert validate_defaults({"process_layers": False, "process_points": True}) is True
        assert validate_defaults({}) is True

    @pytest.mark.parametrize(
        "defaults",
        [[], {"process_layers": "false"}, {"process_labels": True}],
    )
    def test_invalid(self, defaults):
        """Unknown keys and non-boolean values are rejected."""
        with pytest.raises(ValidationError):
            validate_defaults(defaults)


class TestValidateFilterConfig:
    """Tests for validate_filter_config."""

    def test_sample(self, sample_rules):
        """The sample rule set is valid, wrapped or not."""
        assert validate_filter_config(sample_rules) is True
        assert validate_filter_config(sample_rules["tilefilter"]) is True

    def test_empty_lists(self):
        """Empty or null rule lists are valid."""
        assert validate_filter_config({"layers": {"process": None, "ignore": []}}) is True

    def test_rule_position_in_message(self):
        """Errors name the offending rule."""
        config = {"points": {"ignore": [{"layer": "a"}, {"layer": 1}]}}

        with pytest.raises(ValidationError, match=r"points\.ignore\[1\]"):
            validate_filter_config(config)

    @pytest.mark.parametrize(
        "config",
        [
            "rules",
            {"tilefilter": []},
            {"layers": []},
            {"lines": {"process": {"layer": "road"}}},
            {"kinds": ["water"]},
            {"kinds": {"ignore": ["water", 3]}},
        ],
    )
    def test_invalid(self, config):
        """Malformed sections are rejected."""
        with pytest.raises(ValidationError):
            validate_filter_config(config)

    def test_logging_section(self):
        """The logging section beside the rules is validated too."""
        assert validate_filter_config({"logging": {"level": "debug"}}) is True

        with pytest.raises(ValidationError, match="Invalid log level"):
            validate_filter_config({"tilefilter": {"logging": {"level": "verbose"}}})


class TestValidateLoggingConfig:
    """Tests for validate_logging_config."""

    @pytest.mark.parametrize(
        "settings",
        [
            {},
            {"level": None, "file": None},
            {"level": "warning"},
            {"level": 10},
            {"file": "/var/log/tilefilter.log", "max_bytes": 1024, "backup_count": 0},
        ],
    )
    def test_valid(self, settings):
        """Known levels and well-typed rotation settings are accepted."""
        assert validate_logging_config(settings) is True

    @pytest.mark.parametrize(
        "settings",
        [
            "DEBUG",
            {"level": "verbose"},
            {"level": 15},
            {"level": True},
            {"file": 3},
            {"max_bytes": -1},
            {"backup_count": "5"},
            {"format": "%(message)s"},
        ],
    )
    def test_invalid(self, settings):
        """Unknown levels, fields and badly typed values are rejected."""
        with pytest.raises(ValidationError):
            validate_logging_config(settings)


class TestErrorChaining:
    """Tests that wrapped errors keep their cause."""

    def test_match_cause(self):
        """Unknown match modes keep the parse error as cause."""
        with pytest.raises(ValidationError) as exc_info:
            validate_match("fuzzy")

        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_rule_position_cause(self):
        """Rule position errors keep the rule's own error as cause."""
        with pytest.raises(ValidationError) as exc_info:
            validate_filter_config({"points": {"ignore": [{"layer": 1}]}})

        assert isinstance(exc_info.value.__cause__, ValidationError)
