"""tilefilter Rules System.

This module provides the rule engine consulted while vector tiles are decoded:
- FeatureFilterDescriptionBuilder: Assembles an immutable rule set
- GenericFeatureFilter: Early-opt-out layer, feature and kind filtering
- ComposedDataFilter: AND composition of several filters
- GenericFeatureModifier: Class and attribute filtering of resolved features

Rules decide which layers and features are decoded, based on layer name
patterns, geometry types, tile levels, kinds, classes and attributes.
"""

from .description import (
    FeatureFilterDescription,
    FeatureFilterDescriptionBuilder,
    FilterDescription,
    FilterFeatureAttribute,
    LayerFilterDescription,
)
from .env import Env, MapEnv
from .filter import ComposedDataFilter, FeatureFilter, GenericFeatureFilter
from .kinds import GeometryKindSet
from .loader import (
    build_filter,
    build_modifier,
    load_config,
    compose_filters,
    load_description,
    load_description_file,
)
from .modifier import FeatureModifier, GenericFeatureModifier
from .patterns import FilterString, match_string

__all__ = [
    # String patterns
    "FilterString",
    "match_string",
    # Kinds and environments
    "GeometryKindSet",
    "Env",
    "MapEnv",
    # Rule sets
    "FilterFeatureAttribute",
    "LayerFilterDescription",
    "FilterDescription",
    "FeatureFilterDescription",
    "FeatureFilterDescriptionBuilder",
    # Filters and modifiers
    "FeatureFilter",
    "GenericFeatureFilter",
    "ComposedDataFilter",
    "FeatureModifier",
    "GenericFeatureModifier",
    # Loading
    "load_description",
    "load_description_file",
    "load_config",
    "build_filter",
    "build_modifier",
    "compose_filters",
]
