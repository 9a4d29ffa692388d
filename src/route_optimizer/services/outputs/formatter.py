"""Human-readable summaries and map-ready views of optimization results."""

from __future__ import annotations

from ..optimization.models import OptimizationResult

ALREADY_OPTIMIZED_PERCENT = 1.0


def format_optimization_summary(result: OptimizationResult) -> str:
    improvements = result.improvements
    if improvements.percentage_improvement < ALREADY_OPTIMIZED_PERCENT:
        return "Route is already well optimized"

    parts: list[str] = []
    if improvements.distance_saved > 0.1:
        parts.append(f"{improvements.distance_saved:.1f}km shorter")

    if improvements.time_saved > 1:
        hours = int(improvements.time_saved // 60)
        minutes = round(improvements.time_saved % 60)
        parts.append(f"{hours}h {minutes}m faster" if hours > 0 else f"{minutes}m faster")

    if improvements.cost_saved is not None and improvements.cost_saved > 1:
        parts.append(f"€{improvements.cost_saved:.0f} cheaper")

    return ", ".join(parts) if parts else "Minor improvements"


def optimization_visualization(result: OptimizationResult) -> dict:
    original = result.original_route.waypoints
    optimized = result.optimized_route.waypoints
    original_index = {waypoint.id: index for index, waypoint in enumerate(original)}
    return {
        "original_path": [[waypoint.lat, waypoint.lng] for waypoint in original],
        "optimized_path": [[waypoint.lat, waypoint.lng] for waypoint in optimized],
        "reordered_waypoints": [
            {
                "waypoint_id": waypoint.id,
                "original": original_index.get(waypoint.id, -1),
                "optimized": index,
            }
            for index, waypoint in enumerate(optimized)
        ],
        "improvement_metrics": {
            "distance_improvement": result.improvements.distance_saved,
            "time_improvement": result.improvements.time_saved,
            "cost_improvement": result.improvements.cost_saved,
            "efficiency_gain": result.improvements.percentage_improvement,
        },
    }
