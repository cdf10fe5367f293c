#!/usr/bin/env python3
"""String patterns for layer names and feature classes.

This module provides the string-matching primitive used by every rule:
- Exact, prefix, suffix and substring matching
- Glob patterns (roads_*, *_label)
- Regex search
- A match-anything mode

Example:
    >>> pattern = FilterString("road", StringMatch.STARTS_WITH)
    >>> match_string("roads_major", pattern)
    True
"""

import fnmatch
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from tilefilter.core.constants import ConfigKey, StringMatch


@dataclass(frozen=True)
class FilterString:
    """A string value paired with the mode used to match it."""

    value: Optional[str]
    match: StringMatch = StringMatch.MATCH

    @classmethod
    def from_value(
        cls,
        value: Union["FilterString", str, Mapping[str, Any]],
        match: StringMatch = StringMatch.MATCH,
    ) -> "FilterString":
        """Build a pattern from a FilterString, a plain string or a {value, match} mapping.

        Args:
            value: Pattern source
            match: Match mode applied to plain strings

        Returns:
            FilterString instance
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            mode = value.get(ConfigKey.MATCH, match)
            return cls(value[ConfigKey.VALUE], StringMatch.parse(mode))
        return cls(value, StringMatch.parse(match))


def match_string(subject: Optional[str], pattern: FilterString) -> bool:
    """Check if a string matches a pattern.

    Args:
        subject: String to test (layer name or feature class)
        pattern: Pattern to match against

    Returns:
        True if subject matches
    """
    match = pattern.match

    if match == StringMatch.ANY:
        return True

    value = pattern.value
    if subject is None or value is None:
        return False

    if match == StringMatch.MATCH:
        return subject == value
    elif match == StringMatch.STARTS_WITH:
        return subject.startswith(value)
    elif match == StringMatch.CONTAINS:
        return value in subject
    elif match == StringMatch.ENDS_WITH:
        return subject.endswith(value)
    elif match == StringMatch.GLOB:
        return fnmatch.fnmatchcase(subject, value)
    elif match == StringMatch.REGEX:
        # re caches compiled patterns
        return re.search(value, subject) is not None

    return False
