"""Campsite-aware optimization helpers."""

from .service import CampsiteOptimizationService, campsite_suitability, identify_long_segments

__all__ = [
    "CampsiteOptimizationService",
    "campsite_suitability",
    "identify_long_segments",
]
