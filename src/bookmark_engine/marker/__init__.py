"""Marker token encoding and safe placement."""

from .codec import MarkerCodec
from .placement import Placement, PlacementPolicy

__all__ = ["MarkerCodec", "Placement", "PlacementPolicy"]
