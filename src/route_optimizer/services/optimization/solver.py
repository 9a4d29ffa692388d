"""Nearest-neighbour + 2-opt heuristic for open-tour TSP.

The tour always starts at index 0 (the trip origin) and does not return to it.
Construction picks the cheapest unvisited node from the current one (ties go to
the lowest index), then 2-opt sweeps reverse sub-tours while that strictly
lowers the tour cost. Sweeps stop when one finds no improving move or the
iteration budget ``min(two_opt_max_iterations, N^2)`` is spent.

Complexity: O(N^2) construction, O(N^3) per sweep (each candidate reversal is
re-costed in full because the matrix may be asymmetric).
"""

from __future__ import annotations

import asyncio
from typing import AbstractSet

import numpy as np

from ...config import settings
from ...models.domain import Objective
from .models import DistanceMatrix, OptimizationCancelled, SolverResult

# Below this a cost change is float noise, not an improvement.
IMPROVEMENT_EPSILON = 1e-9


def _normalized(table: np.ndarray) -> np.ndarray:
    peak = float(table.max()) if table.size else 0.0
    if peak <= 0:
        return np.zeros_like(table)
    return table / peak


def objective_weights(matrix: DistanceMatrix, objective: Objective) -> np.ndarray:
    """Per-pair cost table the solver minimises for the given objective."""
    match objective:
        case Objective.SHORTEST:
            return matrix.distances
        case Objective.FASTEST:
            return matrix.durations
        case Objective.BALANCED:
            return 0.6 * _normalized(matrix.durations) + 0.4 * _normalized(matrix.distances)
    raise ValueError(f"Unsupported objective: {objective!r}")


def tour_cost(order: np.ndarray, weights: np.ndarray) -> float:
    if len(order) < 2:
        return 0.0
    return float(weights[order[:-1], order[1:]].sum())


def nearest_neighbor_tour(weights: np.ndarray, start: int = 0) -> np.ndarray:
    n = weights.shape[0]
    visited = np.zeros(n, dtype=bool)
    tour = [start]
    visited[start] = True
    current = start
    while len(tour) < n:
        candidates = np.where(visited, np.inf, weights[current])
        # argmin returns the first minimum, so ties keep input order.
        nearest = int(np.argmin(candidates))
        tour.append(nearest)
        visited[nearest] = True
        current = nearest
    return np.array(tour, dtype=int)


def two_opt_swap(order: np.ndarray, i: int, j: int) -> np.ndarray:
    swapped = order.copy()
    swapped[i : j + 1] = order[i : j + 1][::-1]
    return swapped


def solve_tsp(
    matrix: DistanceMatrix,
    objective: Objective,
    locked_positions: AbstractSet[int] = frozenset(),
    max_iterations: int | None = None,
    cancel_event: asyncio.Event | None = None,
) -> SolverResult:
    n = matrix.size
    identity = list(range(n))
    if n <= 3:
        return SolverResult(order=identity, iterations=0, converged=True)

    weights = objective_weights(matrix, objective)
    budget = min(max_iterations if max_iterations is not None else settings.two_opt_max_iterations, n * n)

    best_order = nearest_neighbor_tour(weights)
    best_cost = tour_cost(best_order, weights)

    iterations = 0
    improved = True
    while improved and iterations < budget:
        if cancel_event is not None and cancel_event.is_set():
            raise OptimizationCancelled("Route optimization was cancelled.")
        improved = False
        for i in range(1, n - 1):
            if i in locked_positions:
                continue
            for j in range(i + 1, n):
                if j in locked_positions:
                    continue
                candidate = two_opt_swap(best_order, i, j)
                candidate_cost = tour_cost(candidate, weights)
                if candidate_cost < best_cost - IMPROVEMENT_EPSILON:
                    best_order = candidate
                    best_cost = candidate_cost
                    improved = True
        iterations += 1

    identity_cost = tour_cost(np.array(identity, dtype=int), weights)
    if not best_cost < identity_cost - IMPROVEMENT_EPSILON:
        return SolverResult(order=identity, iterations=iterations, converged=not improved)

    return SolverResult(order=[int(index) for index in best_order], iterations=iterations, converged=not improved)
