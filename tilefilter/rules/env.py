"""Property environments of decoded features.

An environment is the key/value attribute bag the feature modifier inspects
for class and attribute matching. The modifier only ever reads from it.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional


class Env(ABC):
    """Abstract read interface of a feature's properties."""

    @abstractmethod
    def lookup(self, key: str) -> Optional[Any]:
        """Return the value stored under key, or None if absent."""
        pass


class MapEnv(Env):
    """Dictionary-backed environment with an optional parent.

    Keys missing from this environment are looked up in the parent, which
    lets a decoder layer per-feature properties over per-layer ones.

    Example:
        >>> layer_env = MapEnv({"$layer": "road"})
        >>> env = MapEnv({"class": "primary"}, parent=layer_env)
        >>> env.lookup("$layer")
        'road'
    """

    def __init__(self, entries: Optional[Mapping[str, Any]] = None, parent: Optional[Env] = None):
        self.entries: Dict[str, Any] = dict(entries or {})
        self.parent = parent

    def lookup(self, key: str) -> Optional[Any]:
        if key in self.entries:
            return self.entries[key]
        if self.parent is not None:
            return self.parent.lookup(key)
        return None

    def __repr__(self) -> str:
        return f"MapEnv({self.entries!r}, parent={self.parent!r})"
