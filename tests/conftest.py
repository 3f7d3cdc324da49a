import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from kmeans_core import Centroids, Samples


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def square_samples():
    """Four corners of a 2x2 square."""
    return Samples([(0, 0), (2, 0), (0, 2), (2, 2)])


@pytest.fixture
def separated():
    """Two tight, well-separated clouds and one centroid near each."""
    rng = np.random.default_rng(0)
    left = rng.uniform(-1, 1, size=(30, 2)) + [100, 100]
    right = rng.uniform(-1, 1, size=(30, 2)) + [500, 400]
    samples = Samples(np.vstack([left, right]))
    centroids = Centroids([(150, 150), (450, 350)])
    return centroids, samples
