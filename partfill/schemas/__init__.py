"""Schema types for the partfill catalog lookup."""

from .part import PartRecord

__all__ = ["PartRecord"]
