"""Route optimization services."""

from .models import InvalidInputError, OptimizationCancelled, OptimizationCriteria, OptimizationResult
from .service import RouteOptimizationService

__all__ = [
    "RouteOptimizationService",
    "OptimizationCriteria",
    "OptimizationResult",
    "InvalidInputError",
    "OptimizationCancelled",
]
