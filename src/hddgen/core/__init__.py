"""UI-agnostic allocation engine (worker, progress channel, completion gate)."""

from hddgen import __version__

__all__ = ["__version__"]
