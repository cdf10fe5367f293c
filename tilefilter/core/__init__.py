"""tilefilter Core - Shared constants and validation.

Import specific functions from submodules:
    from tilefilter.core import constants
    from tilefilter.core import validators
"""

from tilefilter.core import constants, validators

__all__ = [
    "constants",
    "validators",
]
