"""
Configuration for a live K-means session.

Defaults reproduce the classic demo: an 800x600 canvas, four square
clouds of 25 points, three centroids, one run per second.
"""

import math
from dataclasses import dataclass, asdict, fields
from typing import List, Optional, Tuple

from kmeans_core import EMPTY_POLICIES, EPSILON

__all__ = [
    "ConfigError",
    "KMeansConfig",
    "default_centers",
]


class ConfigError(ValueError):
    """Raised for a configuration that cannot start a session."""


def _finite(value) -> bool:
    return math.isfinite(value)


def default_centers(width: float, height: float) -> List[Tuple[float, float]]:
    """
    The four cloud centers of the classic demo.

    Start at the canvas center, step down, step right, then jump back
    left to 30% of the previous x.
    """
    x, y = width / 2, height / 2
    centers = [(x, y)]

    y += y / 2
    centers.append((x, y))

    x += x / 2
    centers.append((x, y))

    x -= x * 0.7
    centers.append((x, y))
    return centers


@dataclass
class KMeansConfig:
    """Startup options for a session."""

    # Canvas
    window_width: int = 800
    window_height: int = 600

    # Data
    num_clusters: int = 3
    samples_per_cluster: int = 25
    cluster_radius: float = 50.0
    centers: Optional[List[Tuple[float, float]]] = None  # None = default_centers()

    # Iteration control
    convergence_epsilon: float = EPSILON
    pacing_threshold: float = 1.0
    max_iterations: int = 300
    empty_policy: str = "keep"
    step_mode: bool = True

    # Misc
    seed: Optional[int] = None
    frame_interval_ms: int = 16
    verbose: bool = True

    def validate(self) -> "KMeansConfig":
        """
        Raise ConfigError for the first invalid option.

        Real-valued options must also be finite: NaN and inf are rejected.
        """
        if not (_finite(self.window_width) and _finite(self.window_height)
                and self.window_width > 0 and self.window_height > 0):
            raise ConfigError(
                f"window size must be finite and positive, got {self.window_width}x{self.window_height}")
        if self.num_clusters < 1:
            raise ConfigError(f"num_clusters must be >= 1, got {self.num_clusters}")
        if self.samples_per_cluster < 0:
            raise ConfigError(
                f"samples_per_cluster must be >= 0, got {self.samples_per_cluster}")
        if not (_finite(self.cluster_radius) and self.cluster_radius >= 0):
            raise ConfigError(f"cluster_radius must be finite and >= 0, got {self.cluster_radius}")
        if not (_finite(self.convergence_epsilon) and self.convergence_epsilon >= 0):
            raise ConfigError(
                f"convergence_epsilon must be finite and >= 0, got {self.convergence_epsilon}")
        if not (_finite(self.pacing_threshold) and self.pacing_threshold >= 0):
            raise ConfigError(f"pacing_threshold must be finite and >= 0, got {self.pacing_threshold}")
        if self.max_iterations < 1:
            raise ConfigError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.empty_policy not in EMPTY_POLICIES:
            raise ConfigError(
                f"empty_policy must be one of {EMPTY_POLICIES}, got {self.empty_policy!r}")
        if self.frame_interval_ms <= 0:
            raise ConfigError(
                f"frame_interval_ms must be positive, got {self.frame_interval_ms}")
        return self

    def cloud_centers(self) -> List[Tuple[float, float]]:
        if self.centers is not None:
            return [tuple(c) for c in self.centers]
        return default_centers(self.window_width, self.window_height)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "KMeansConfig":
        """Create from dict, dropping unknown keys."""
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_keys})
