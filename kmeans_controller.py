"""
ITERATION CONTROLLER — When does K-means take a step?

===============================================================
THE STATE MACHINE
===============================================================

    IDLE ──(elapsed >= pacing_threshold)──> CONVERGING
    CONVERGING ──(converged or max_iterations)──> IDLE

The renderer feeds elapsed time through tick(dt). Once enough
time has passed, a RUN starts: repeated

    snapshot → assign → update → converged(snapshot, centroids)?

until the centroids stop moving. Ending a run resets the
elapsed-time accumulator, so the next run waits another full
pacing interval.

===============================================================
STEP MODE vs BLOCKING MODE
===============================================================

step_mode=True:  each tick() advances ONE iteration, so every
                 intermediate state gets drawn.
step_mode=False: the tick that starts the run also finishes it;
                 the caller only ever sees before/after.

iterate() is the generator form of the same loop: it yields one
StepResult per iteration until the run ends.

max_iterations bounds every run, so a centroid that never settles
(e.g. the 'nan' empty-cluster policy) cannot hang the caller.

===============================================================
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from kmeans_config import KMeansConfig
from kmeans_core import (
    EPSILON,
    Centroids,
    Samples,
    assign_step,
    centroid_shift,
    converged,
    create_centroids,
    generate_samples,
    inertia,
    update_step,
)


IDLE = 'idle'
CONVERGING = 'converging'


@dataclass
class StepResult:
    """Outcome of one assign/update iteration."""
    iteration: int
    converged: bool
    empty_clusters: List[int]
    inertia: float
    shift: float
    skipped: bool = False


@dataclass
class RunSummary:
    """Outcome of one IDLE → CONVERGING → IDLE run."""
    run: int
    iterations: int
    converged: bool
    inertia: float
    empty_clusters: List[int] = field(default_factory=list)


class IterationController:
    """
    Paces K-means runs against an external clock.

    Parameters:
    -----------
    centroids, samples : the session's collections (mutated in place)
    pacing_threshold : float
        Elapsed time needed before a run starts
    epsilon : float
        Squared-displacement tolerance for convergence
    max_iterations : int
        Upper bound on iterations per run
    empty_policy : str
        'keep', 'nan' or 'reseed' (see kmeans_core.update_step)
    step_mode : bool
        One iteration per tick (True) or whole run per tick (False)
    """

    def __init__(self, centroids: Centroids, samples: Samples, pacing_threshold=1.0,
                 epsilon=EPSILON, max_iterations=300, empty_policy='keep',
                 step_mode=True, rng=None, verbose=False):
        self.centroids = centroids
        self.samples = samples
        self.pacing_threshold = pacing_threshold
        self.epsilon = epsilon
        self.max_iterations = max_iterations
        self.empty_policy = empty_policy
        self.step_mode = step_mode
        self.rng = rng
        self.verbose = verbose

        self.state = IDLE
        self.elapsed = 0.0
        self.iteration = 0       # Iterations in the current (or last) run
        self.runs = 0            # Completed runs
        self.previous: Optional[Centroids] = None
        self.last_step: Optional[StepResult] = None
        self.last_run: Optional[RunSummary] = None
        self._run_empty = set()

    @property
    def is_converging(self):
        return self.state == CONVERGING

    def tick(self, dt: float) -> Optional[StepResult]:
        """
        Advance the clock by dt and do whatever work is due.

        Returns the last StepResult computed during this tick, or None
        if the controller stayed idle.
        """
        if dt < 0:
            raise ValueError(f"dt must be >= 0, got {dt}")
        self.elapsed += dt

        if self.state == IDLE:
            if self.elapsed < self.pacing_threshold:
                return None
            self._begin_run()

        if self.step_mode:
            return self.step()

        self.run_to_convergence()
        return self.last_step

    def step(self) -> StepResult:
        """Run one snapshot → assign → update → converged? iteration."""
        if self.state == IDLE:
            self._begin_run()

        self.previous = self.centroids.copy()
        assign_step(self.centroids, self.samples)
        empty = update_step(self.centroids, self.samples,
                            empty_policy=self.empty_policy, rng=self.rng)
        self.iteration += 1

        skipped = empty is None
        if skipped:
            empty = []
            done = False
        else:
            done = converged(self.previous, self.centroids, self.epsilon)
        self._run_empty.update(empty)

        result = StepResult(
            iteration=self.iteration,
            converged=done,
            empty_clusters=empty,
            inertia=inertia(self.centroids, self.samples),
            shift=centroid_shift(self.previous, self.centroids),
            skipped=skipped,
        )
        self.last_step = result

        if self.verbose and empty:
            print(f"  Iteration {self.iteration}: empty clusters {empty} "
                  f"(policy={self.empty_policy})")

        if done or skipped or self.iteration >= self.max_iterations:
            self._finish_run(done)
        return result

    def iterate(self):
        """Yield one StepResult per iteration until the run ends."""
        if self.state == IDLE:
            self._begin_run()
        while self.state == CONVERGING:
            yield self.step()

    def run_to_convergence(self) -> RunSummary:
        """Run a whole run synchronously."""
        for _ in self.iterate():
            pass
        return self.last_run

    def _begin_run(self):
        self.state = CONVERGING
        self.iteration = 0
        self._run_empty = set()
        if self.verbose:
            print(f"\nRun {self.runs + 1}: k={len(self.centroids)}, "
                  f"{len(self.samples)} samples")

    def _finish_run(self, done):
        self.runs += 1
        self.last_run = RunSummary(
            run=self.runs,
            iterations=self.iteration,
            converged=done,
            inertia=self.last_step.inertia,
            empty_clusters=sorted(self._run_empty),
        )
        self.state = IDLE
        self.elapsed = 0.0

        if self.verbose:
            if done:
                print(f"  Converged after {self.iteration} iterations, "
                      f"inertia={self.last_run.inertia:.1f}")
            elif self.last_step.skipped:
                print(f"  Update skipped after {self.iteration} iterations, "
                      f"retrying next run")
            else:
                print(f"  Stopped at max_iterations={self.max_iterations} "
                      f"without converging")


# ============================================================
# SESSION
# ============================================================

@dataclass
class KMeansSession:
    """Everything a live session owns for its lifetime."""
    config: KMeansConfig
    samples: Samples
    centroids: Centroids
    controller: IterationController


def build_session(config: Optional[KMeansConfig] = None, rng=None) -> KMeansSession:
    """
    Validate the config, generate the clouds and place the centroids.

    Config errors are raised before any state is created.
    """
    config = (config or KMeansConfig()).validate()
    if rng is None:
        rng = np.random.default_rng(config.seed)

    samples = Samples()
    for center in config.cloud_centers():
        generate_samples(samples, center, config.samples_per_cluster,
                         config.cluster_radius, rng=rng)

    centroids = create_centroids(config.num_clusters, config.window_width,
                                 config.window_height, rng=rng)

    controller = IterationController(
        centroids, samples,
        pacing_threshold=config.pacing_threshold,
        epsilon=config.convergence_epsilon,
        max_iterations=config.max_iterations,
        empty_policy=config.empty_policy,
        step_mode=config.step_mode,
        rng=rng,
        verbose=config.verbose,
    )
    return KMeansSession(config, samples, centroids, controller)
