#!/usr/bin/env python3
"""Per-feature filtering once a feature's properties are resolved.

The feature modifier runs after the early filter has let a feature through
and its property environment exists, right before styles are selected. It
matches rules on the feature's ``class`` property and on arbitrary
key/value attributes.

Example:
    >>> modifier = GenericFeatureModifier(description)
    >>> modifier.do_process_line_feature("road", MapEnv({"state": "closed"}))
    False
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from tilefilter.core.constants import CLASS_PROPERTY
from tilefilter.infrastructure.logger import get_logger
from tilefilter.rules.description import FeatureFilterDescription, FilterDescription
from tilefilter.rules.env import Env
from tilefilter.rules.patterns import match_string


class FeatureModifier(ABC):
    """Predicates deciding which fully decoded features get styled."""

    @abstractmethod
    def do_process_point_feature(self, layer: str, env: Env) -> bool:
        """Check if the point feature described by env should be processed.

        Args:
            layer: Current layer
            env: Properties of point feature

        Returns:
            False to ignore feature
        """
        pass

    @abstractmethod
    def do_process_line_feature(self, layer: str, env: Env) -> bool:
        """Check if the line feature described by env should be processed."""
        pass

    @abstractmethod
    def do_process_polygon_feature(self, layer: str, env: Env) -> bool:
        """Check if the polygon feature described by env should be processed."""
        pass


def lookup(env: Env, key: str) -> Optional[Any]:
    """Read a property, treating a failed lookup as an absent one."""
    try:
        return env.lookup(key)
    except LookupError:
        return None


class GenericFeatureModifier(FeatureModifier):
    """Modifier driven by a :class:`FeatureFilterDescription`.

    Evaluation order for every category:
    1. To-process rules matching the feature class -> True
    2. To-ignore rules matching the feature class -> False
    3. To-process rules matching a feature attribute -> True
    4. To-ignore rules matching a feature attribute -> False
    5. The category default
    """

    def __init__(self, description: FeatureFilterDescription):
        """Initialize modifier.

        Args:
            description: Rule set; shared, never modified
        """
        self._description = description
        get_logger().debug("Created feature modifier", rules=description.rule_count)

    @property
    def description(self) -> FeatureFilterDescription:
        """Rule set the modifier evaluates."""
        return self._description

    @staticmethod
    def match_items(
        layer_name: str, feature_class: str, items: Tuple[FilterDescription, ...]
    ) -> bool:
        """Return True if a rule for this layer lists a matching class."""
        for item in items:
            if item.classes is None:
                continue
            if not match_string(layer_name, item.layer_name):
                continue
            for match_class in item.classes:
                if match_string(feature_class, match_class):
                    return True
        return False

    @staticmethod
    def match_attribute(layer_name: str, env: Env, items: Tuple[FilterDescription, ...]) -> bool:
        """Return True if a rule for this layer names an attribute the feature carries."""
        for item in items:
            attribute = item.feature_attribute
            if attribute is None:
                continue
            if not match_string(layer_name, item.layer_name):
                continue
            value = lookup(env, attribute.key)
            if value is not None and value == attribute.value:
                return True
        return False

    def do_process_point_feature(self, layer: str, env: Env) -> bool:
        return self._do_process_feature(
            self._description.points_to_process,
            self._description.points_to_ignore,
            layer,
            env,
            self._description.process_points_default,
        )

    def do_process_line_feature(self, layer: str, env: Env) -> bool:
        return self._do_process_feature(
            self._description.lines_to_process,
            self._description.lines_to_ignore,
            layer,
            env,
            self._description.process_lines_default,
        )

    def do_process_polygon_feature(self, layer: str, env: Env) -> bool:
        return self._do_process_feature(
            self._description.polygons_to_process,
            self._description.polygons_to_ignore,
            layer,
            env,
            self._description.process_polygons_default,
        )

    def _do_process_feature(
        self,
        items_to_process: Tuple[FilterDescription, ...],
        items_to_ignore: Tuple[FilterDescription, ...],
        layer: Optional[str],
        env: Env,
        default_result: bool,
    ) -> bool:
        if layer is None or (not items_to_process and not items_to_ignore):
            return default_result

        feature_class: Optional[str] = None
        class_value = lookup(env, CLASS_PROPERTY)
        if class_value is not None:
            feature_class = str(class_value)

        # An empty class counts as no class
        if feature_class and self.match_items(layer, feature_class, items_to_process):
            return True

        if feature_class and self.match_items(layer, feature_class, items_to_ignore):
            return False

        if self.match_attribute(layer, env, items_to_process):
            return True

        if self.match_attribute(layer, env, items_to_ignore):
            return False

        return default_result
