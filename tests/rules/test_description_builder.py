#!/usr/bin/env python3
"""Tests for FeatureFilterDescriptionBuilder and the rule-set data model."""

import math

import pytest

from tilefilter.core.constants import GeometryKind, GeometryType, StringMatch
from tilefilter.core.validators import ValidationError
from tilefilter.rules.description import (
    FeatureFilterDescription,
    FeatureFilterDescriptionBuilder,
    FilterFeatureAttribute,
    LayerFilterDescription,
)
from tilefilter.rules.patterns import FilterString


class TestBuilderDefaults:
    """Tests for builder defaults."""

    def test_all_true_by_default(self, builder):
        """Every category default is True unless configured."""
        description = builder.create_description()

        assert description.process_layers_default is True
        assert description.process_points_default is True
        assert description.process_lines_default is True
        assert description.process_polygons_default is True
        assert description.rule_count == 0
        assert description.kinds_to_process == ()
        assert description.kinds_to_ignore == ()

    def test_custom_defaults(self):
        """Defaults passed to the builder end up in the description."""
        description = FeatureFilterDescriptionBuilder(
            process_layers_default=False, process_lines_default=False
        ).create_description()

        assert description.process_layers_default is False
        assert description.process_points_default is True
        assert description.process_lines_default is False
        assert description.process_polygons_default is True


class TestLayerRules:
    """Tests for layer rules."""

    def test_process_layer(self, builder):
        """process_layer appends a rule with exact matching and full level range."""
        builder.process_layer("water")
        description = builder.create_description()

        assert description.layers_to_process == (
            LayerFilterDescription(FilterString("water"), 0, math.inf),
        )
        assert description.layers_to_ignore == ()

    def test_ignore_layer(self, builder):
        """ignore_layer keeps match mode and level range."""
        builder.ignore_layer("admin", StringMatch.STARTS_WITH, 2, 9)
        rule = builder.create_description().layers_to_ignore[0]

        assert rule.name == FilterString("admin", StringMatch.STARTS_WITH)
        assert (rule.min_level, rule.max_level) == (2, 9)

    def test_order_kept(self, builder):
        """Rules keep the order they were added in."""
        for name in ("a", "b", "c"):
            builder.process_layer(name)

        names = [r.name.value for r in builder.create_description().layers_to_process]
        assert names == ["a", "b", "c"]

    def test_in_level_range(self):
        """Level ranges are inclusive on both ends."""
        rule = LayerFilterDescription(FilterString("x"), 4, 8)

        assert [rule.in_level_range(level) for level in (3, 4, 8, 9)] == [
            False,
            True,
            True,
            False,
        ]


class TestFeatureRules:
    """Tests for point, line and polygon rules."""

    def test_single_class_rule(self, builder):
        """Single-feature rules carry exactly one class pattern."""
        builder.process_point(
            "poi",
            geom_type=GeometryType.POINT,
            feature_class="bar",
            match_class=StringMatch.CONTAINS,
        )
        rule = builder.create_description().points_to_process[0]

        assert rule.layer_name == FilterString("poi")
        assert rule.geometry_types == (GeometryType.POINT,)
        assert rule.classes == (FilterString("bar", StringMatch.CONTAINS),)
        assert rule.feature_attribute is None

    def test_multi_class_rule(self, builder):
        """Multi-feature rules accept strings, mappings and FilterStrings."""
        builder.process_polygons(
            "landuse",
            geom_types=["polygon"],
            feature_classes=[
                "park",
                {"value": "wood", "match": "starts_with"},
                FilterString("farm", StringMatch.ENDS_WITH),
            ],
        )
        rule = builder.create_description().polygons_to_process[0]

        assert rule.geometry_types == (GeometryType.POLYGON,)
        assert rule.classes == (
            FilterString("park"),
            FilterString("wood", StringMatch.STARTS_WITH),
            FilterString("farm", StringMatch.ENDS_WITH),
        )

    def test_multi_rule_without_classes(self, builder):
        """Multi-feature rules may have no classes at all."""
        builder.ignore_lines("road", geom_types=GeometryType.LINESTRING)
        rule = builder.create_description().lines_to_ignore[0]

        assert rule.classes is None
        assert rule.geometry_types == (GeometryType.LINESTRING,)

    def test_no_geometry_types(self, builder):
        """Leaving out geometry types leaves them undefined."""
        builder.ignore_point("poi", feature_class="bar")

        assert builder.create_description().points_to_ignore[0].geometry_types is None

    def test_feature_attribute(self, builder):
        """Attributes can be passed as FilterFeatureAttribute or mapping."""
        builder.ignore_line("road", feature_attribute={"key": "state", "value": "closed"})
        builder.ignore_polygon("building", feature_attribute=FilterFeatureAttribute("h", 3))
        description = builder.create_description()

        assert description.lines_to_ignore[0].feature_attribute == FilterFeatureAttribute(
            "state", "closed"
        )
        assert description.polygons_to_ignore[0].feature_attribute == FilterFeatureAttribute(
            "h", 3
        )

    @pytest.mark.parametrize(
        "method,attribute",
        [
            ("process_point", "points_to_process"),
            ("process_points", "points_to_process"),
            ("ignore_point", "points_to_ignore"),
            ("ignore_points", "points_to_ignore"),
            ("process_line", "lines_to_process"),
            ("process_lines", "lines_to_process"),
            ("ignore_line", "lines_to_ignore"),
            ("ignore_lines", "lines_to_ignore"),
            ("process_polygon", "polygons_to_process"),
            ("process_polygons", "polygons_to_process"),
            ("ignore_polygon", "polygons_to_ignore"),
            ("ignore_polygons", "polygons_to_ignore"),
        ],
    )
    def test_methods_fill_their_lists(self, builder, method, attribute):
        """Every builder method appends to its own list only."""
        getattr(builder, method)("layer")
        description = builder.create_description()

        assert len(getattr(description, attribute)) == 1
        assert description.rule_count == 1


class TestLevelNormalization:
    """Tests for level range normalization."""

    def test_unset_levels(self, builder):
        """Unset levels become 0 and +inf."""
        builder.process_point("poi")
        rule = builder.create_description().points_to_process[0]

        assert rule.min_level == 0
        assert rule.max_level == math.inf

    def test_nan_levels(self, builder):
        """NaN levels become 0 and +inf."""
        builder.process_lines("road", min_level=math.nan, max_level=math.nan)
        builder.process_layer("water", min_level=math.nan, max_level=math.nan)
        description = builder.create_description()

        assert (description.lines_to_process[0].min_level, description.lines_to_process[0].max_level) == (
            0,
            math.inf,
        )
        assert description.layers_to_process[0].max_level == math.inf

    def test_negative_min_level(self, builder):
        """Negative levels are rejected at build time."""
        with pytest.raises(ValidationError):
            builder.process_point("poi", min_level=-1)

    def test_inverted_range(self, builder):
        """max_level below min_level is rejected at build time."""
        with pytest.raises(ValidationError):
            builder.process_layer("water", min_level=10, max_level=5)


class TestBuilderErrors:
    """Tests for invalid builder input."""

    def test_invalid_geometry_type(self, builder):
        """Unknown geometry types are rejected."""
        with pytest.raises(ValidationError):
            builder.process_point("poi", geom_type="circle")

    def test_invalid_match(self, builder):
        """Unknown match modes are rejected."""
        with pytest.raises(ValidationError):
            builder.process_layer("water", "fuzzy")

    def test_invalid_class_pattern(self, builder):
        """Class mappings must carry a value."""
        with pytest.raises(ValidationError):
            builder.process_points("poi", feature_classes=[{"match": "any"}])

    def test_invalid_attribute(self, builder):
        """Attributes need a key and a value."""
        with pytest.raises(ValidationError):
            builder.process_point("poi", feature_attribute={"key": "state"})


class TestSnapshots:
    """Tests for description immutability."""

    def test_later_calls_do_not_change_snapshot(self, builder):
        """A description is not affected by later builder calls."""
        builder.process_layer("water")
        builder.process_kinds(["water"])
        first = builder.create_description()

        builder.process_layer("road")
        builder.process_kinds(["road"])
        second = builder.create_description()

        assert len(first.layers_to_process) == 1
        assert first.kinds_to_process == ("water",)
        assert len(second.layers_to_process) == 2
        assert second.kinds_to_process == ("water", "road")

    def test_description_frozen(self):
        """Descriptions cannot be modified."""
        description = FeatureFilterDescription()
        with pytest.raises(AttributeError):
            description.process_layers_default = False

    def test_kinds_accumulate(self, builder):
        """Kind lists are appended to, not replaced."""
        builder.ignore_kinds(["a"])
        builder.ignore_kinds(["b", "c"])

        assert builder.create_description().kinds_to_ignore == ("a", "b", "c")

    def test_enum_kinds_stored_as_labels(self, builder):
        """GeometryKind members are stored as their plain labels."""
        builder.process_kinds([GeometryKind.WATER, "road"])
        builder.ignore_kinds([GeometryKind.BUILDING])
        description = builder.create_description()

        assert description.kinds_to_process == ("water", "road")
        assert description.kinds_to_ignore == ("building",)
