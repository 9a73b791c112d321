"""silvererp: cached client core for a silver trading ERP."""

from silvererp.version import __version__

__all__ = ["__version__"]
