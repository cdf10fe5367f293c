"""tilefilter - Declarative layer and feature filtering for vector tile decoding."""

from tilefilter.core.constants import TILEFILTER_VERSION as __version__

__all__ = ["__version__"]
