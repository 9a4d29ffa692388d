"""Route optimization endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.optimization import (
    AnalyzeRouteRequest,
    InsertionRequest,
    InsertionResponse,
    OptimizationResponse,
    OptimizeRouteRequest,
    RouteAnalysisResponse,
)
from ...services.optimization.analysis import analyze_route
from ...services.optimization.service import RouteOptimizationService
from ...services.outputs.formatter import format_optimization_summary, optimization_visualization

router = APIRouter(prefix="/optimization", tags=["optimization"])

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_optimization_service() -> RouteOptimizationService:
    """Process-wide optimizer so the distance-matrix cache is shared between requests."""
    return RouteOptimizationService()


@router.post("/optimize", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
async def optimize(
    payload: OptimizeRouteRequest,
    service: RouteOptimizationService = Depends(get_optimization_service),
) -> OptimizationResponse:
    try:
        result = await service.optimize_route(
            [waypoint.to_domain() for waypoint in payload.waypoints],
            payload.criteria.to_criteria(),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}",
        ) from exc
    return OptimizationResponse.model_validate(
        {
            **asdict(result),
            "summary": format_optimization_summary(result),
            "visualization": optimization_visualization(result),
        }
    )


@router.post("/insertion", response_model=InsertionResponse, status_code=status.HTTP_200_OK)
async def insertion(
    payload: InsertionRequest,
    service: RouteOptimizationService = Depends(get_optimization_service),
) -> InsertionResponse:
    try:
        result = await service.find_optimal_insertion(
            [waypoint.to_domain() for waypoint in payload.existing_waypoints],
            payload.new_waypoint.to_domain(),
            payload.criteria.to_criteria(),
        )
    except Exception as exc:
        logger.exception(f"Error searching insertion position: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to find insertion position: {str(exc)}",
        ) from exc
    return InsertionResponse.model_validate(asdict(result))


@router.post("/analyze", response_model=RouteAnalysisResponse, status_code=status.HTTP_200_OK)
def analyze(payload: AnalyzeRouteRequest) -> RouteAnalysisResponse:
    analysis = analyze_route([waypoint.to_domain() for waypoint in payload.waypoints])
    return RouteAnalysisResponse.model_validate(asdict(analysis))


@router.get("/cache", status_code=status.HTTP_200_OK)
def cache_stats(service: RouteOptimizationService = Depends(get_optimization_service)) -> dict:
    return service.cache_stats()


@router.delete("/cache", status_code=status.HTTP_200_OK)
def clear_cache(service: RouteOptimizationService = Depends(get_optimization_service)) -> dict:
    service.clear_cache()
    return {"status": "cleared"}
