#!/usr/bin/env python3
"""Rule sets for the feature filter and the feature modifier.

This module provides the immutable rule-set snapshot consumed by
:class:`~tilefilter.rules.filter.GenericFeatureFilter` and
:class:`~tilefilter.rules.modifier.GenericFeatureModifier`, and the builder
that assembles it:
- Layer rules (name pattern + level range)
- Point, line and polygon rules (layer, geometry types, classes, attribute)
- Per-category defaults for anything no rule mentions
- Kind lists to process or ignore

Example:
    >>> builder = FeatureFilterDescriptionBuilder(process_points_default=False)
    >>> builder.process_point("poi", geom_type=GeometryType.POINT, feature_class="bar")
    >>> builder.ignore_layer("admin", StringMatch.STARTS_WITH)
    >>> description = builder.create_description()
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from tilefilter.core.constants import MAX_LEVEL, MIN_LEVEL, GeometryType, StringMatch
from tilefilter.core.validators import (
    ValidationError,
    normalize_level_range,
    validate_geometry_type,
    validate_match,
)
from tilefilter.infrastructure.logger import get_logger
from tilefilter.rules.kinds import KindLike, kind_label
from tilefilter.rules.patterns import FilterString

GeometryTypes = Union[GeometryType, int, str, Sequence[Union[GeometryType, int, str]]]


@dataclass(frozen=True)
class FilterFeatureAttribute:
    """Property key/value pair a feature must carry to match a rule."""

    key: str
    value: Any


@dataclass(frozen=True)
class LayerFilterDescription:
    """Rule accepting or rejecting a whole layer."""

    name: FilterString
    min_level: float = MIN_LEVEL
    max_level: float = MAX_LEVEL

    def in_level_range(self, level: float) -> bool:
        return self.min_level <= level <= self.max_level


@dataclass(frozen=True)
class FilterDescription:
    """Rule accepting or rejecting point, line or polygon features.

    ``geometry_types`` is used by the early feature filter; ``classes`` and
    ``feature_attribute`` by the feature modifier. A rule without
    ``geometry_types`` never matches in the early filter.
    """

    layer_name: FilterString
    geometry_types: Optional[Tuple[GeometryType, ...]] = None
    classes: Optional[Tuple[FilterString, ...]] = None
    min_level: float = MIN_LEVEL
    max_level: float = MAX_LEVEL
    feature_attribute: Optional[FilterFeatureAttribute] = None

    def in_level_range(self, level: float) -> bool:
        return self.min_level <= level <= self.max_level


@dataclass(frozen=True)
class FeatureFilterDescription:
    """Immutable rule set shared by filters and modifiers.

    Rules are kept in insertion order; to-process rules are always
    consulted before to-ignore rules.
    """

    process_layers_default: bool = True
    process_points_default: bool = True
    process_lines_default: bool = True
    process_polygons_default: bool = True

    layers_to_process: Tuple[LayerFilterDescription, ...] = ()
    layers_to_ignore: Tuple[LayerFilterDescription, ...] = ()
    points_to_process: Tuple[FilterDescription, ...] = ()
    points_to_ignore: Tuple[FilterDescription, ...] = ()
    lines_to_process: Tuple[FilterDescription, ...] = ()
    lines_to_ignore: Tuple[FilterDescription, ...] = ()
    polygons_to_process: Tuple[FilterDescription, ...] = ()
    polygons_to_ignore: Tuple[FilterDescription, ...] = ()

    kinds_to_process: Tuple[str, ...] = ()
    kinds_to_ignore: Tuple[str, ...] = ()

    @property
    def rule_count(self) -> int:
        """Total number of layer and feature rules."""
        return sum(
            len(rules)
            for rules in (
                self.layers_to_process,
                self.layers_to_ignore,
                self.points_to_process,
                self.points_to_ignore,
                self.lines_to_process,
                self.lines_to_ignore,
                self.polygons_to_process,
                self.polygons_to_ignore,
            )
        )


def _geometry_types(geom_type: Optional[GeometryTypes]) -> Optional[Tuple[GeometryType, ...]]:
    if geom_type is None:
        return None
    if isinstance(geom_type, (GeometryType, int, str)):
        geom_type = [geom_type]
    return tuple(validate_geometry_type(t) for t in geom_type)


class FeatureFilterDescriptionBuilder:
    """Builds a :class:`FeatureFilterDescription`.

    Features:
    - Append-only rule lists, kept in call order
    - Level ranges normalized once (unset or NaN -> 0 / +inf)
    - Immutable snapshots; later calls don't change earlier descriptions
    """

    def __init__(
        self,
        process_layers_default: bool = True,
        process_points_default: bool = True,
        process_lines_default: bool = True,
        process_polygons_default: bool = True,
    ):
        """Initialize builder.

        Args:
            process_layers_default: Process layers no rule mentions
            process_points_default: Process point features no rule mentions
            process_lines_default: Process line features no rule mentions
            process_polygons_default: Process polygon features no rule mentions
        """
        self._process_layers_default = process_layers_default
        self._process_points_default = process_points_default
        self._process_lines_default = process_lines_default
        self._process_polygons_default = process_polygons_default

        self._layers_to_process: List[LayerFilterDescription] = []
        self._layers_to_ignore: List[LayerFilterDescription] = []
        self._points_to_process: List[FilterDescription] = []
        self._points_to_ignore: List[FilterDescription] = []
        self._lines_to_process: List[FilterDescription] = []
        self._lines_to_ignore: List[FilterDescription] = []
        self._polygons_to_process: List[FilterDescription] = []
        self._polygons_to_ignore: List[FilterDescription] = []

        self._kinds_to_process: List[str] = []
        self._kinds_to_ignore: List[str] = []

    # Layers

    def process_layer(
        self,
        layer: str,
        match: StringMatch = StringMatch.MATCH,
        min_level: Optional[float] = MIN_LEVEL,
        max_level: Optional[float] = MAX_LEVEL,
    ) -> None:
        """Add a layer that should be processed.

        Args:
            layer: Layer name to be matched
            match: Match condition
            min_level: Minimum tile level to match
            max_level: Maximum tile level to match
        """
        self._layers_to_process.append(self._layer_item(layer, match, min_level, max_level))

    def ignore_layer(
        self,
        layer: str,
        match: StringMatch = StringMatch.MATCH,
        min_level: Optional[float] = MIN_LEVEL,
        max_level: Optional[float] = MAX_LEVEL,
    ) -> None:
        """Add a layer that should be ignored.

        Args:
            layer: Layer name to be matched
            match: Match condition
            min_level: Minimum tile level to match
            max_level: Maximum tile level to match
        """
        self._layers_to_ignore.append(self._layer_item(layer, match, min_level, max_level))

    # Points

    def process_point(self, layer: str, **options) -> None:
        """Add a valid point feature. See :meth:`_add_item` for options."""
        self._add_item(self._points_to_process, layer, **options)

    def process_points(self, layer: str, **options) -> None:
        """Add valid point features. See :meth:`_add_items` for options."""
        self._add_items(self._points_to_process, layer, **options)

    def ignore_point(self, layer: str, **options) -> None:
        """Add a point feature that should be ignored."""
        self._add_item(self._points_to_ignore, layer, **options)

    def ignore_points(self, layer: str, **options) -> None:
        """Add point features that should be ignored."""
        self._add_items(self._points_to_ignore, layer, **options)

    # Lines

    def process_line(self, layer: str, **options) -> None:
        """Add a valid line feature."""
        self._add_item(self._lines_to_process, layer, **options)

    def process_lines(self, layer: str, **options) -> None:
        """Add valid line features."""
        self._add_items(self._lines_to_process, layer, **options)

    def ignore_line(self, layer: str, **options) -> None:
        """Ignore a line feature."""
        self._add_item(self._lines_to_ignore, layer, **options)

    def ignore_lines(self, layer: str, **options) -> None:
        """Ignore line features."""
        self._add_items(self._lines_to_ignore, layer, **options)

    # Polygons

    def process_polygon(self, layer: str, **options) -> None:
        """Add a valid polygon feature."""
        self._add_item(self._polygons_to_process, layer, **options)

    def process_polygons(self, layer: str, **options) -> None:
        """Add valid polygon features."""
        self._add_items(self._polygons_to_process, layer, **options)

    def ignore_polygon(self, layer: str, **options) -> None:
        """Ignore a polygon feature."""
        self._add_item(self._polygons_to_ignore, layer, **options)

    def ignore_polygons(self, layer: str, **options) -> None:
        """Ignore polygon features."""
        self._add_items(self._polygons_to_ignore, layer, **options)

    # Kinds

    def process_kinds(self, enabled_kinds: Iterable[KindLike]) -> None:
        """Add kinds whose geometry should be generated.

        Args:
            enabled_kinds: Kind labels
        """
        self._kinds_to_process.extend(enabled_kinds)

    def ignore_kinds(self, disabled_kinds: Iterable[KindLike]) -> None:
        """Add kinds whose geometry should not be generated.

        Args:
            disabled_kinds: Kind labels
        """
        self._kinds_to_ignore.extend(disabled_kinds)

    def create_description(self) -> FeatureFilterDescription:
        """Create an immutable snapshot of the rules added so far.

        Returns:
            Rule set to pass to a filter or modifier
        """
        description = FeatureFilterDescription(
            process_layers_default=self._process_layers_default,
            process_points_default=self._process_points_default,
            process_lines_default=self._process_lines_default,
            process_polygons_default=self._process_polygons_default,
            layers_to_process=tuple(self._layers_to_process),
            layers_to_ignore=tuple(self._layers_to_ignore),
            points_to_process=tuple(self._points_to_process),
            points_to_ignore=tuple(self._points_to_ignore),
            lines_to_process=tuple(self._lines_to_process),
            lines_to_ignore=tuple(self._lines_to_ignore),
            polygons_to_process=tuple(self._polygons_to_process),
            polygons_to_ignore=tuple(self._polygons_to_ignore),
            kinds_to_process=tuple(kind_label(k) for k in self._kinds_to_process),
            kinds_to_ignore=tuple(kind_label(k) for k in self._kinds_to_ignore),
        )

        get_logger().debug(
            "Created feature filter description",
            rules=description.rule_count,
            kinds_to_process=len(description.kinds_to_process),
            kinds_to_ignore=len(description.kinds_to_ignore),
        )
        return description

    def _layer_item(
        self,
        layer: str,
        match: StringMatch,
        min_level: Optional[float],
        max_level: Optional[float],
    ) -> LayerFilterDescription:
        min_level, max_level = normalize_level_range(min_level, max_level)
        return LayerFilterDescription(
            name=FilterString(layer, validate_match(match)),
            min_level=min_level,
            max_level=max_level,
        )

    def _add_item(
        self,
        items: List[FilterDescription],
        layer: str,
        geom_type: Optional[GeometryTypes] = None,
        feature_class: Optional[str] = None,
        match_layer: StringMatch = StringMatch.MATCH,
        match_class: StringMatch = StringMatch.MATCH,
        min_level: Optional[float] = None,
        max_level: Optional[float] = None,
        feature_attribute: Optional[FilterFeatureAttribute] = None,
    ) -> None:
        """Append a rule matching a single feature class.

        Args:
            items: Rule list to append to
            layer: Layer name to be matched
            geom_type: Geometry type(s) the rule is limited to
            feature_class: Class to match
            match_layer: Match condition for the layer name
            match_class: Match condition for ``feature_class``
            min_level: Minimum tile level to match
            max_level: Maximum tile level to match
            feature_attribute: Feature attribute to match
        """
        min_level, max_level = normalize_level_range(min_level, max_level)

        items.append(
            FilterDescription(
                layer_name=FilterString(layer, validate_match(match_layer)),
                geometry_types=_geometry_types(geom_type),
                classes=(FilterString(feature_class, validate_match(match_class)),),
                min_level=min_level,
                max_level=max_level,
                feature_attribute=_attribute(feature_attribute),
            )
        )

    def _add_items(
        self,
        items: List[FilterDescription],
        layer: str,
        geom_types: Optional[GeometryTypes] = None,
        feature_classes: Optional[Sequence[Any]] = None,
        match_layer: StringMatch = StringMatch.MATCH,
        min_level: Optional[float] = None,
        max_level: Optional[float] = None,
        feature_attribute: Optional[FilterFeatureAttribute] = None,
    ) -> None:
        """Append a rule matching several feature classes.

        Args:
            items: Rule list to append to
            layer: Layer name to be matched
            geom_types: Geometry type(s) the rule is limited to
            feature_classes: Classes to match (FilterString, string or {value, match})
            match_layer: Match condition for the layer name
            min_level: Minimum tile level to match
            max_level: Maximum tile level to match
            feature_attribute: Feature attribute to match
        """
        min_level, max_level = normalize_level_range(min_level, max_level)

        classes = None
        if feature_classes is not None:
            try:
                classes = tuple(FilterString.from_value(c) for c in feature_classes)
            except (KeyError, ValueError) as e:
                raise ValidationError(f"Invalid feature class pattern: {e}") from e

        items.append(
            FilterDescription(
                layer_name=FilterString(layer, validate_match(match_layer)),
                geometry_types=_geometry_types(geom_types),
                classes=classes,
                min_level=min_level,
                max_level=max_level,
                feature_attribute=_attribute(feature_attribute),
            )
        )


def _attribute(attribute: Any) -> Optional[FilterFeatureAttribute]:
    if attribute is None or isinstance(attribute, FilterFeatureAttribute):
        return attribute
    if isinstance(attribute, dict) and "key" in attribute and "value" in attribute:
        return FilterFeatureAttribute(attribute["key"], attribute["value"])
    raise ValidationError(f"Invalid feature attribute: {attribute!r}")
