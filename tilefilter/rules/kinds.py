"""Sets of semantic kind labels."""

from typing import FrozenSet, Iterable, Union

from tilefilter.core.constants import GeometryKind

KindLike = Union[str, GeometryKind]


def kind_label(kind: KindLike) -> str:
    """Return the plain string label of a kind."""
    return kind.value if isinstance(kind, GeometryKind) else str(kind)


class GeometryKindSet:
    """Immutable set of kind labels.

    Kinds are compared as plain strings, so ``GeometryKind.WATER`` and
    ``"water"`` are the same label.
    """

    __slots__ = ("_kinds",)

    def __init__(self, kinds: Iterable[KindLike] = ()):
        self._kinds: FrozenSet[str] = frozenset(kind_label(kind) for kind in kinds)

    def has(self, kind: KindLike) -> bool:
        """Return True if the label is in the set."""
        return kind_label(kind) in self._kinds

    def intersects(self, kinds: Iterable[KindLike]) -> bool:
        """Return True if any of the labels is in the set."""
        return any(kind_label(kind) in self._kinds for kind in kinds)

    def has_or_intersects(self, kind: Union[KindLike, Iterable[KindLike]]) -> bool:
        """Test one label for membership, or several labels for intersection.

        Args:
            kind: A single label or an iterable of labels

        Returns:
            True if the label (or any of the labels) is in the set
        """
        if isinstance(kind, str):
            return self.has(kind)
        return self.intersects(kind)

    def __contains__(self, kind: object) -> bool:
        return isinstance(kind, str) and self.has(kind)

    def __iter__(self):
        return iter(self._kinds)

    def __len__(self) -> int:
        return len(self._kinds)

    def __repr__(self) -> str:
        return f"GeometryKindSet({sorted(self._kinds)!r})"
