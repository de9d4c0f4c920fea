"""
K-means color clustering for palette extraction.

Implements the three stages of the quantizer over RGB sample vectors:

- k-means++ seeding (``seed_centroids``)
- Lloyd's assign/update refinement (``iterate_lloyd`` / ``run_lloyd``)
- population ranking of the final clusters (``rank_clusters``)

All stages measure color similarity with the same Euclidean RGB distance
(``distances_to``) so seeding and refinement agree on what "nearest" means.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .errors import ConfigurationError

ColorVector = Tuple[int, int, int]

MAX_ITERATIONS = 10


@dataclass(frozen=True)
class LloydResult:
    """Snapshot of the cluster state after one Lloyd iteration."""
    centroids: np.ndarray    # (k, 3) int64
    assignments: np.ndarray  # (n,) intp
    iterations: int
    converged: bool


def color_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between two RGB colors."""
    diff = np.asarray(a[:3], dtype=np.float64) - np.asarray(b[:3], dtype=np.float64)
    return float(np.sqrt(np.dot(diff, diff)))


def distances_to(samples: np.ndarray, centroid: Sequence[float]) -> np.ndarray:
    """Euclidean distance from every sample (N, 3) to a single centroid."""
    diff = np.asarray(samples, dtype=np.float64) - np.asarray(centroid, dtype=np.float64)
    return np.sqrt(np.sum(diff * diff, axis=1))


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer (halves up) and clamp into [0, 255]."""
    rounded = np.floor(np.asarray(values, dtype=np.float64) + 0.5)
    return np.clip(rounded, 0, 255).astype(np.int64)


def seed_centroids(samples: np.ndarray, k: int,
                   rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Choose initial centroids with k-means++.

    The first centroid is a uniformly random sample. Each following centroid
    is drawn with probability proportional to the squared distance between a
    sample and its nearest already-chosen centroid; chosen samples weigh 0.
    When every remaining sample coincides with a chosen centroid the total
    weight is 0 and seeding stops early, returning fewer than ``k`` rows.

    Args:
        samples: Sample set (N, 3)
        k: Requested number of centroids, 1 <= k <= N
        rng: Random source; a fresh unseeded generator when omitted

    Returns:
        Centroid array (k', 3) int64 with 1 <= k' <= k
    """
    samples = np.asarray(samples, dtype=np.int64)
    n = len(samples)
    if not 1 <= k <= n:
        raise ConfigurationError(f"Seeding requires 1 <= k <= {n}, got k={k}")

    if rng is None:
        rng = np.random.default_rng()

    first = int(rng.integers(n))
    chosen = [first]
    chosen_mask = np.zeros(n, dtype=bool)
    chosen_mask[first] = True
    nearest = distances_to(samples, samples[first])

    while len(chosen) < k:
        weights = nearest * nearest
        weights[chosen_mask] = 0.0
        cumulative = np.cumsum(weights)
        total = cumulative[-1]
        if total <= 0.0:
            logger.info(f"Degenerate seeding: {len(chosen)} distinct centroids for k={k}")
            break

        target = rng.random() * total
        index = min(int(np.searchsorted(cumulative, target, side="right")), n - 1)

        chosen.append(index)
        chosen_mask[index] = True
        nearest = np.minimum(nearest, distances_to(samples, samples[index]))

    return samples[chosen]


def assign_clusters(samples: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Index of the nearest centroid for every sample; ties go to the lowest index."""
    distances = np.column_stack([distances_to(samples, c) for c in centroids])
    return np.argmin(distances, axis=1)


def update_centroids(samples: np.ndarray, assignments: np.ndarray,
                     centroids: np.ndarray) -> np.ndarray:
    """Rounded mean of each cluster; empty clusters keep their previous centroid."""
    k = len(centroids)
    counts = np.bincount(assignments, minlength=k)
    sums = np.stack(
        [np.bincount(assignments, weights=samples[:, c], minlength=k) for c in range(3)],
        axis=1
    )

    updated = np.array(centroids, dtype=np.int64, copy=True)
    occupied = counts > 0
    updated[occupied] = round_half_up(sums[occupied] / counts[occupied, None])
    return updated


def iterate_lloyd(samples: np.ndarray, centroids: np.ndarray,
                  max_iterations: int = MAX_ITERATIONS) -> Iterator[LloydResult]:
    """
    Run Lloyd's algorithm, yielding the cluster state after every iteration.

    Each iteration assigns every sample to its nearest centroid and then moves
    each centroid to the rounded mean of its members. The loop stops after
    ``max_iterations`` or as soon as an assign pass after the first one leaves
    every assignment unchanged. The last yielded snapshot is the result.
    """
    if max_iterations < 1:
        raise ConfigurationError(f"max_iterations must be >= 1, got {max_iterations}")
    if len(centroids) == 0:
        raise ConfigurationError("Clustering requires at least one centroid")

    samples_f = np.asarray(samples, dtype=np.float64)
    current = np.array(centroids, dtype=np.int64, copy=True)
    assignments = np.zeros(len(samples_f), dtype=np.intp)

    for iteration in range(max_iterations):
        new_assignments = assign_clusters(samples_f, current)
        changed = bool(np.any(new_assignments != assignments))
        assignments = new_assignments

        if not changed and iteration > 0:
            yield LloydResult(current, assignments, iteration + 1, True)
            return

        current = update_centroids(samples_f, assignments, current)
        yield LloydResult(current, assignments, iteration + 1, False)


def run_lloyd(samples: np.ndarray, centroids: np.ndarray,
              max_iterations: int = MAX_ITERATIONS) -> LloydResult:
    """Run Lloyd's algorithm to termination and return the final state."""
    result = None
    for result in iterate_lloyd(samples, centroids, max_iterations):
        pass
    logger.debug(f"Lloyd finished after {result.iterations} iterations (converged={result.converged})")
    return result


async def run_lloyd_async(samples: np.ndarray, centroids: np.ndarray,
                          max_iterations: int = MAX_ITERATIONS) -> LloydResult:
    """Same as ``run_lloyd`` but yields to the event loop after every iteration."""
    result = None
    for result in iterate_lloyd(samples, centroids, max_iterations):
        await asyncio.sleep(0)
    logger.debug(f"Lloyd finished after {result.iterations} iterations (converged={result.converged})")
    return result


def rank_clusters(centroids: np.ndarray,
                  assignments: np.ndarray) -> Tuple[List[ColorVector], List[int]]:
    """
    Order centroids by descending cluster population.

    The sort is stable: clusters with equal counts keep their index order.

    Returns:
        Tuple of (ordered colors, member count of each ordered color)
    """
    k = len(centroids)
    assignments = np.asarray(assignments, dtype=np.intp)
    if assignments.size and (assignments.min() < 0 or assignments.max() >= k):
        raise ValueError(f"Assignment indices must lie in [0, {k})")

    counts = np.bincount(assignments, minlength=k)
    order = np.argsort(-counts, kind="stable")

    colors = [tuple(int(v) for v in centroids[i]) for i in order]
    return colors, [int(counts[i]) for i in order]
