"""
K-MEANS CORE — Samples, Centroids and Lloyd's two steps

===============================================================
WHAT IT IS
===============================================================

The state a live K-means session owns, plus the pieces of one
iteration:

    1. GENERATE samples scattered around a few centers
    2. INITIALIZE k centroids, one per diagonal band of the canvas
    3. ASSIGN: each sample → nearest centroid
    4. UPDATE: each centroid → mean of its samples
    5. CONVERGED? compare centroids against the pre-iteration copy

Everything is 2D. Positions live in numpy arrays so the steps
are vectorized, but the collections still behave like ordered
sequences of Sample / Centroid records.

===============================================================
EMPTY CLUSTERS
===============================================================

A centroid that owns no samples has no mean (0 / 0). The update
step never hides this: it returns the indices of empty clusters
and applies one of three policies:

    'keep'   : leave the centroid where it was (default)
    'nan'    : reproduce the raw 0/0 → NaN position
    'reseed' : jump onto a random sample

===============================================================
"""

import sys
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np


UNASSIGNED = -1
EPSILON = 1e-4

EMPTY_POLICIES = ('keep', 'nan', 'reseed')


@dataclass
class Sample:
    """A 2D point and the index of the centroid it belongs to."""
    x: float
    y: float
    cluster: int = UNASSIGNED


@dataclass
class Centroid:
    x: float
    y: float


def _as_rng(rng):
    if rng is None:
        return np.random.default_rng()
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


# ============================================================
# COLLECTIONS
# ============================================================

class Samples:
    """
    Ordered, append-only collection of samples.

    positions : (n, 2) float array
    clusters  : (n,) int array, UNASSIGNED until the first assign
    """

    def __init__(self, positions=None):
        if positions is None:
            positions = np.empty((0, 2))
        self.positions = np.asarray(positions, dtype=float).reshape(-1, 2)
        self.clusters = np.full(len(self.positions), UNASSIGNED, dtype=int)

    def extend(self, points):
        """Append points (m, 2) in order, all unassigned."""
        points = np.asarray(points, dtype=float).reshape(-1, 2)
        self.positions = np.vstack([self.positions, points])
        self.clusters = np.concatenate(
            [self.clusters, np.full(len(points), UNASSIGNED, dtype=int)])
        return self

    def append(self, sample: Sample):
        """
        Append one sample. Copies both arrays, so it is O(n) per call;
        bulk growth goes through extend().
        """
        self.positions = np.vstack([self.positions, [[sample.x, sample.y]]])
        self.clusters = np.append(self.clusters, int(sample.cluster))
        return self

    def __len__(self):
        return len(self.positions)

    def __getitem__(self, i) -> Sample:
        x, y = self.positions[i]
        return Sample(float(x), float(y), int(self.clusters[i]))

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]


class Centroids:
    """
    Fixed-size collection of k centroids.

    The order is the canonical cluster index: Sample.cluster == i
    means "belongs to centroids[i]".
    """

    def __init__(self, positions):
        self.positions = np.asarray(positions, dtype=float).reshape(-1, 2).copy()

    @property
    def k(self):
        return len(self.positions)

    def copy(self):
        return Centroids(self.positions)

    def __len__(self):
        return len(self.positions)

    def __getitem__(self, i) -> Centroid:
        x, y = self.positions[i]
        return Centroid(float(x), float(y))

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]


# ============================================================
# GENERATOR + INITIALIZER
# ============================================================

def generate_samples(samples: Samples, center: Tuple[float, float], count: int,
                     radius: float, rng=None) -> Samples:
    """
    Append `count` samples around `center`.

    Each axis is offset independently by U(-radius, radius), so the
    cloud is a square, not a disc.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")

    rng = _as_rng(rng)
    offsets = rng.uniform(-radius, radius, size=(count, 2))
    return samples.extend(np.asarray(center, dtype=float) + offsets)


def create_centroids(k: int, width: float, height: float, rng=None) -> Centroids:
    """
    Place k centroids, the i-th drawn uniformly inside band i.

    The canvas is cut into k vertical and k horizontal bands; centroid
    i lives in [i*w/k, (i+1)*w/k) x [i*h/k, (i+1)*h/k). This spreads
    the starting points along the diagonal instead of letting them
    pile up in one corner.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")

    rng = _as_rng(rng)
    x_sep = width / k
    y_sep = height / k
    band = np.arange(k)

    xs = rng.uniform(x_sep * band, x_sep * (band + 1))
    ys = rng.uniform(y_sep * band, y_sep * (band + 1))
    return Centroids(np.column_stack([xs, ys]))


# ============================================================
# ASSIGN / UPDATE / CONVERGE
# ============================================================

def pairwise_distances(points, centers):
    """Euclidean distance matrix (n_points × n_centers)."""
    diff = points[:, None, :] - centers[None, :, :]
    return np.sqrt(np.sum(diff**2, axis=2))


def assign_step(centroids: Centroids, samples: Samples) -> None:
    """
    Label every sample with its nearest centroid.

    np.argmin returns the FIRST minimum, so on an exact tie the lower
    centroid index wins. A NaN centroid is never nearest; a sample with
    no finite distance at all keeps its label.
    """
    if len(centroids) == 0 or len(samples) == 0:
        return

    distances = pairwise_distances(samples.positions, centroids.positions)
    distances = np.where(np.isnan(distances), np.inf, distances)

    nearest = np.argmin(distances, axis=1)
    reachable = np.isfinite(distances[np.arange(len(nearest)), nearest])
    samples.clusters[reachable] = nearest[reachable]


def update_step(centroids: Centroids, samples: Samples, empty_policy='keep',
                rng=None) -> Optional[List[int]]:
    """
    Move each centroid to the mean of its assigned samples.

    Returns the indices of centroids that had no samples, or None when
    the accumulator could not be allocated (centroids untouched).
    """
    if empty_policy not in EMPTY_POLICIES:
        raise ValueError(f"unknown empty-cluster policy {empty_policy!r}, "
                         f"expected one of {EMPTY_POLICIES}")

    k = len(centroids)
    try:
        # Mean accumulator: per-centroid sums and member counts
        assigned = samples.clusters != UNASSIGNED
        labels = samples.clusters[assigned]
        points = samples.positions[assigned]
        sum_x = np.bincount(labels, weights=points[:, 0], minlength=k)
        sum_y = np.bincount(labels, weights=points[:, 1], minlength=k)
        total = np.bincount(labels, minlength=k)
    except MemoryError:
        print("ERROR: could not allocate the mean accumulator, "
              "skipping this update", file=sys.stderr)
        return None

    filled = total > 0
    centroids.positions[filled, 0] = sum_x[filled] / total[filled]
    centroids.positions[filled, 1] = sum_y[filled] / total[filled]

    empty = [int(i) for i in np.flatnonzero(~filled)]
    if empty_policy == 'nan':
        centroids.positions[empty] = np.nan
    elif empty_policy == 'reseed' and len(samples) > 0:
        rng = _as_rng(rng)
        # Distinct samples while there are enough, so two empty clusters
        # never land on the same point
        picks = rng.choice(len(samples), size=len(empty),
                           replace=len(empty) > len(samples))
        centroids.positions[empty] = samples.positions[picks]

    return empty


def converged(previous: Centroids, current: Centroids, epsilon=EPSILON) -> bool:
    """
    True when no centroid moved more than sqrt(epsilon).

    Compares squared displacement against epsilon. A NaN displacement
    is never "within epsilon".
    """
    if len(previous) != len(current):
        return False

    shift = np.sum((previous.positions - current.positions)**2, axis=1)
    return bool(np.all(shift <= epsilon))


def centroid_shift(previous: Centroids, current: Centroids) -> float:
    """Total squared centroid movement between two snapshots."""
    return float(np.sum((previous.positions - current.positions)**2))


def inertia(centroids: Centroids, samples: Samples) -> float:
    """
    Within-cluster sum of squares over the assigned samples.

        Σₖ Σ_{x∈Cₖ} ||x - μₖ||²

    Lloyd's steps never increase it.
    """
    assigned = samples.clusters != UNASSIGNED
    if not np.any(assigned):
        return 0.0
    diff = samples.positions[assigned] - centroids.positions[samples.clusters[assigned]]
    return float(np.sum(diff**2))
