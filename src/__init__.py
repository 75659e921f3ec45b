"""lexresearch — legal research aggregation with a cost-aware cache shell."""

from lexresearch.version import __version__

__all__ = ["__version__"]
