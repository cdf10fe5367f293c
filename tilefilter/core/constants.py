"""
tilefilter Foundation: Constants and Type Definitions

This module provides system-wide constants, error codes, and type definitions
shared by the rule engine, the configuration layer and the CLI.
"""
import math
from enum import Enum, IntEnum
from typing import TypeAlias

# Version information
TILEFILTER_VERSION = "1.0.0"


class ErrorCode(IntEnum):
    """Standardized error codes for tilefilter operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad rule, invalid configuration
    NOT_FOUND = 2  # Rule file doesn't exist
    PERMISSION_DENIED = 3  # Rule file not readable
    INTERNAL_ERROR = 6  # Bug in tilefilter


# Type aliases for clarity
LayerName: TypeAlias = str
KindName: TypeAlias = str


class GeometryType(IntEnum):
    """Geometry type of a vector tile feature (as encoded in the tile)."""

    UNKNOWN = 0
    POINT = 1
    LINESTRING = 2
    POLYGON = 3

    @classmethod
    def parse(cls, value) -> "GeometryType":
        """Parse a geometry type from an enum member, int or name.

        Raises:
            ValueError: If the value names no geometry type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid geometry type: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "LINE":
                name = "LINESTRING"
            try:
                return cls[name]
            except KeyError:
                pass
        raise ValueError(f"Invalid geometry type: {value!r}")


class StringMatch(Enum):
    """String match mode used by layer and class patterns."""

    ANY = "any"  # Matches every subject
    MATCH = "match"  # Exact equality
    STARTS_WITH = "starts_with"
    CONTAINS = "contains"
    ENDS_WITH = "ends_with"
    GLOB = "glob"  # Shell-style patterns (roads_*, *_label)
    REGEX = "regex"  # Regular expression search

    @classmethod
    def parse(cls, value) -> "StringMatch":
        """Parse a match mode from an enum member or its name/value.

        Raises:
            ValueError: If the value names no match mode
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            # camelCase spellings (startsWith)
            key = {"startswith": "starts_with", "endswith": "ends_with"}.get(key, key)
            try:
                return cls(key)
            except ValueError:
                pass
        raise ValueError(f"Invalid match mode: {value!r}")


class GeometryKind(str, Enum):
    """Well-known semantic kind labels.

    Kinds are plain strings; any label is accepted where a kind is expected.
    """

    ALL = "all"
    BACKGROUND = "background"
    TERRAIN = "terrain"
    DEFAULT = "default"
    BORDER = "border"
    BASEMAP = "basemap"
    AREA = "area"
    WATER = "water"
    BUILDING = "building"
    ROAD = "road"
    LABEL = "label"
    DETAIL = "detail"


# Level range defaults
MIN_LEVEL = 0
MAX_LEVEL = math.inf

# Property looked up by the feature modifier to resolve a feature's class
CLASS_PROPERTY = "class"


class ConfigKey:
    """Configuration key constants."""

    # Top-level keys
    ROOT = "tilefilter"
    DEFAULTS = "defaults"
    LAYERS = "layers"
    POINTS = "points"
    LINES = "lines"
    POLYGONS = "polygons"
    KINDS = "kinds"
    LOGGING = "logging"

    # Rule list keys
    PROCESS = "process"
    IGNORE = "ignore"

    # Default keys
    PROCESS_LAYERS = "process_layers"
    PROCESS_POINTS = "process_points"
    PROCESS_LINES = "process_lines"
    PROCESS_POLYGONS = "process_polygons"

    # Rule keys
    NAME = "name"
    MATCH = "match"
    LAYER = "layer"
    MATCH_LAYER = "match_layer"
    MATCH_CLASS = "match_class"
    GEOMETRY_TYPES = "geometry_types"
    FEATURE_CLASS = "feature_class"
    FEATURE_CLASSES = "feature_classes"
    FEATURE_ATTRIBUTE = "feature_attribute"
    MIN_LEVEL = "min_level"
    MAX_LEVEL = "max_level"
    KEY = "key"
    VALUE = "value"


FEATURE_CATEGORIES = (ConfigKey.POINTS, ConfigKey.LINES, ConfigKey.POLYGONS)

# Logging section
LOGGING_FIELDS = ("level", "file", "max_bytes", "backup_count")
LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}

# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.ROOT: {
        ConfigKey.DEFAULTS: {
            ConfigKey.PROCESS_LAYERS: True,
            ConfigKey.PROCESS_POINTS: True,
            ConfigKey.PROCESS_LINES: True,
            ConfigKey.PROCESS_POLYGONS: True,
        },
        ConfigKey.LOGGING: {
            "level": "INFO",
            "file": None,
        },
    }
}
