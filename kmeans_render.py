"""
Matplotlib renderer for a live K-means session.

Draws samples as small dots colored by cluster, centroids as large
dots in the same palette, and feeds frame time to the controller.
Coordinates are screen-style: (0, 0) is the top-left corner.
"""

import time

import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.colors import to_rgba

from kmeans_core import UNASSIGNED


# First three clusters use the classic demo colors, the rest cycle tab10
PALETTE = ['red', 'green', 'yellow']
UNASSIGNED_COLOR = 'pink'
BACKGROUND = '#f5f5f5'

SAMPLE_RADIUS = 5
CENTROID_RADIUS = 10


def color_for(cluster):
    """RGBA color for a cluster index (UNASSIGNED gets its own color)."""
    if cluster == UNASSIGNED:
        return to_rgba(UNASSIGNED_COLOR)
    if cluster < len(PALETTE):
        return to_rgba(PALETTE[cluster])
    return to_rgba(plt.cm.tab10(cluster % 10))


def marker_size(radius_px, dpi):
    """Scatter `s` (points²) for a circle of the given pixel radius."""
    diameter_pt = 2 * radius_px * 72.0 / dpi
    return diameter_pt**2


class Renderer:
    """
    Owns the figure and drives the session's controller once per frame.

    fixed_dt : float or None
        Seconds per frame. None = measure wall-clock time between frames
        (interactive use); a number makes runs reproducible (saving).
    """

    def __init__(self, session, fixed_dt=None, dpi=100, clock=time.perf_counter):
        self.session = session
        self.controller = session.controller
        self.fixed_dt = fixed_dt
        self.clock = clock
        self._last_time = None
        self.frames_drawn = 0

        config = session.config
        width, height = config.window_width, config.window_height

        self.fig, self.ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
        self.ax.set_xlim(0, width)
        self.ax.set_ylim(height, 0)
        self.ax.set_aspect('equal')
        self.ax.set_facecolor(BACKGROUND)
        self.ax.set_xticks([])
        self.ax.set_yticks([])

        samples = session.samples
        self.sample_artist = self.ax.scatter(
            samples.positions[:, 0], samples.positions[:, 1],
            s=marker_size(SAMPLE_RADIUS, dpi), zorder=2)
        self.centroid_artist = self.ax.scatter(
            session.centroids.positions[:, 0], session.centroids.positions[:, 1],
            s=marker_size(CENTROID_RADIUS, dpi), edgecolors='black',
            linewidth=1.5, zorder=10)
        self.draw()

    def sample_colors(self):
        return [color_for(int(c)) for c in self.session.samples.clusters]

    def centroid_colors(self):
        return [color_for(i) for i in range(len(self.session.centroids))]

    def title(self):
        controller = self.controller
        text = f'K-means: k={len(self.session.centroids)}'
        if controller.is_converging:
            text += f' | run {controller.runs + 1}, iteration {controller.iteration}'
        elif controller.last_run is not None:
            last = controller.last_run
            verdict = 'converged' if last.converged else 'stopped'
            text += f' | run {last.run} {verdict} in {last.iterations} iterations'
        else:
            text += ' | waiting'
        if controller.last_step is not None:
            text += f' | inertia={controller.last_step.inertia:.0f}'
        return text

    def draw(self):
        """Push the current samples and centroids into the artists."""
        self.sample_artist.set_offsets(self.session.samples.positions)
        self.sample_artist.set_facecolors(self.sample_colors())
        self.centroid_artist.set_offsets(self.session.centroids.positions)
        self.centroid_artist.set_facecolors(self.centroid_colors())
        self.ax.set_title(self.title())
        return self.sample_artist, self.centroid_artist

    def elapsed(self):
        """Time since the previous frame."""
        if self.fixed_dt is not None:
            return self.fixed_dt
        now = self.clock()
        dt = 0.0 if self._last_time is None else now - self._last_time
        self._last_time = now
        return dt

    def frame(self, _frame=None):
        """One animation frame: tick the controller, then redraw."""
        self.controller.tick(self.elapsed())
        self.frames_drawn += 1
        return self.draw()

    def frames_until_runs(self, runs=1, tail=10):
        """Frame numbers until `runs` more runs finish, plus a few still frames."""
        target = self.controller.runs + runs
        i = 0
        while self.controller.runs < target:
            yield i
            i += 1
        for _ in range(tail):
            yield i
            i += 1

    def animate(self, frames=None):
        return animation.FuncAnimation(
            self.fig, self.frame, frames=frames, init_func=self.draw,
            interval=self.session.config.frame_interval_ms,
            blit=False, cache_frame_data=False, repeat=False)

    def show(self):
        self._last_time = None
        anim = self.animate()
        plt.show()
        return anim

    def save(self, path, runs=1, fps=None):
        """
        Write the next `runs` runs to an animated gif.

        Frames are grabbed one by one through the pillow writer, so the
        file holds every frame until the runs finish, whatever number
        of frames that turns out to be.
        """
        interval = self.session.config.frame_interval_ms
        if self.fixed_dt is None:
            self.fixed_dt = interval / 1000.0
        if fps is None:
            fps = max(1, round(1000.0 / interval))

        writer = animation.PillowWriter(fps=fps)
        with writer.saving(self.fig, str(path), self.fig.dpi):
            self.draw()
            writer.grab_frame()
            for _ in self.frames_until_runs(runs):
                self.frame()
                writer.grab_frame()
        return path

    def close(self):
        plt.close(self.fig)
