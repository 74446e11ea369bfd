"""Public package surface for tldsweep.

Importing `tldsweep` exposes the high-level API function (`TLDSWEEP`) and package
version, keeping internals hidden by default.
"""

from .core import TLDSWEEP
from .version import __version__

__all__ = ["TLDSWEEP", "__version__"]
