#!/usr/bin/env python3
"""Early-opt-out filtering of layers and features.

This module provides the filters a tile decoder consults before a layer or
feature is fully decoded:
- Layer accept/reject by name pattern and level range
- Point, line and polygon accept/reject by layer and geometry type
- Kind filtering against enabled/disabled kind sets
- AND composition of several filters

Returning False from any predicate ends processing of that layer or
feature. Individual features cannot be inspected at this stage; use a
:class:`~tilefilter.rules.modifier.FeatureModifier` for that.

Example:
    >>> feature_filter = GenericFeatureFilter(description)
    >>> feature_filter.wants_layer("water", 12)
    True
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from tilefilter.core.constants import GeometryType
from tilefilter.infrastructure.logger import get_logger
from tilefilter.rules.description import (
    FeatureFilterDescription,
    FilterDescription,
    LayerFilterDescription,
)
from tilefilter.rules.kinds import GeometryKindSet
from tilefilter.rules.patterns import match_string

Kind = Union[str, Sequence[str]]


class FeatureFilter(ABC):
    """Predicates deciding which layers and features get decoded."""

    @property
    @abstractmethod
    def has_kind_filter(self) -> bool:
        """True if the filter contains rules for specific kinds."""
        pass

    @abstractmethod
    def wants_layer(self, layer: str, level: float) -> bool:
        """Return False if the layer should not be processed.

        Args:
            layer: Current layer
            level: Level of tile
        """
        pass

    @abstractmethod
    def wants_point_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        """Return False if the point feature should not be processed."""
        pass

    @abstractmethod
    def wants_line_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        """Return False if the line feature should not be processed."""
        pass

    @abstractmethod
    def wants_polygon_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        """Return False if the polygon feature should not be processed."""
        pass

    @abstractmethod
    def wants_kind(self, kind: Optional[Kind]) -> bool:
        """Return False if the kind is not enabled and no geometry should be created.

        Args:
            kind: One kind label or several
        """
        pass


class GenericFeatureFilter(FeatureFilter):
    """Filter driven by a :class:`FeatureFilterDescription`.

    Evaluation order for every category:
    1. To-process rules, first match returns True
    2. To-ignore rules, first match returns False
    3. The category default
    """

    def __init__(self, description: FeatureFilterDescription):
        """Initialize filter.

        Args:
            description: Rule set; shared, never modified
        """
        self._description = description

        # Empty kind lists leave the set undefined, which disables that check
        self._enabled_kinds: Optional[GeometryKindSet] = None
        self._disabled_kinds: Optional[GeometryKindSet] = None

        if description.kinds_to_process:
            self._enabled_kinds = GeometryKindSet(description.kinds_to_process)
        if description.kinds_to_ignore:
            self._disabled_kinds = GeometryKindSet(description.kinds_to_ignore)

        get_logger().debug(
            "Created feature filter",
            rules=description.rule_count,
            kind_filter=self.has_kind_filter,
        )

    @property
    def description(self) -> FeatureFilterDescription:
        """Rule set the filter evaluates."""
        return self._description

    @staticmethod
    def _match_layer(
        layer: str, layer_items: Tuple[LayerFilterDescription, ...], level: float
    ) -> bool:
        for item in layer_items:
            if not item.in_level_range(level):
                continue

            if match_string(layer, item.name):
                return True
        return False

    def wants_layer(self, layer: str, level: float) -> bool:
        description = self._description

        if self._match_layer(layer, description.layers_to_process, level):
            return True

        if self._match_layer(layer, description.layers_to_ignore, level):
            return False

        return description.process_layers_default

    def wants_point_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        return self._wants_feature(
            self._description.points_to_process,
            self._description.points_to_ignore,
            layer,
            geometry_type,
            level,
            self._description.process_points_default,
        )

    def wants_line_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        return self._wants_feature(
            self._description.lines_to_process,
            self._description.lines_to_ignore,
            layer,
            geometry_type,
            level,
            self._description.process_lines_default,
        )

    def wants_polygon_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        return self._wants_feature(
            self._description.polygons_to_process,
            self._description.polygons_to_ignore,
            layer,
            geometry_type,
            level,
            self._description.process_polygons_default,
        )

    def wants_kind(self, kind: Optional[Kind]) -> bool:
        # Nothing to filter on
        if kind is None:
            return True

        blocked = self._disabled_kinds is not None and self._disabled_kinds.has_or_intersects(kind)
        allowed = self._enabled_kinds is not None and self._enabled_kinds.has_or_intersects(kind)

        return not blocked or allowed

    @property
    def has_kind_filter(self) -> bool:
        return self._enabled_kinds is not None or self._disabled_kinds is not None

    def _wants_feature(
        self,
        items_to_process: Tuple[FilterDescription, ...],
        items_to_ignore: Tuple[FilterDescription, ...],
        layer: str,
        geometry_type: GeometryType,
        level: float,
        default_result: bool,
    ) -> bool:
        for item in items_to_process:
            if not item.in_level_range(level):
                continue

            if not match_string(layer, item.layer_name):
                continue

            if item.geometry_types is not None and geometry_type in item.geometry_types:
                return True

        # Level range is not checked for ignore rules
        for item in items_to_ignore:
            if not match_string(layer, item.layer_name):
                continue

            if item.geometry_types is not None and geometry_type in item.geometry_types:
                return False

        return default_result


class ComposedDataFilter(FeatureFilter):
    """Filter that says yes only if every wrapped filter says yes.

    With no wrapped filters every predicate returns True.
    """

    def __init__(self, filters: Iterable[FeatureFilter]):
        self.filters: List[FeatureFilter] = list(filters)

    @property
    def has_kind_filter(self) -> bool:
        return all(f.has_kind_filter for f in self.filters)

    def wants_layer(self, layer: str, level: float) -> bool:
        return all(f.wants_layer(layer, level) for f in self.filters)

    def wants_point_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        return all(f.wants_point_feature(layer, geometry_type, level) for f in self.filters)

    def wants_line_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        return all(f.wants_line_feature(layer, geometry_type, level) for f in self.filters)

    def wants_polygon_feature(self, layer: str, geometry_type: GeometryType, level: float) -> bool:
        return all(f.wants_polygon_feature(layer, geometry_type, level) for f in self.filters)

    def wants_kind(self, kind: Optional[Kind]) -> bool:
        return all(f.wants_kind(kind) for f in self.filters)