"""
Tests for the matplotlib renderer (Agg backend, no window).
"""

import numpy as np
import pytest
from matplotlib.colors import to_rgba

from kmeans_config import KMeansConfig
from kmeans_controller import build_session
from kmeans_core import UNASSIGNED
from kmeans_render import Renderer, color_for, marker_size


@pytest.fixture
def renderer():
    session = build_session(KMeansConfig(seed=11, verbose=False))
    r = Renderer(session, fixed_dt=0.5)
    yield r
    r.close()


def test_palette():
    assert color_for(UNASSIGNED) == to_rgba("pink")
    assert color_for(0) == to_rgba("red")
    assert color_for(1) == to_rgba("green")
    assert color_for(2) == to_rgba("yellow")
    # Past the classic three, colors still exist and differ
    assert color_for(3) != color_for(4)
    assert color_for(13) == color_for(3)


def test_marker_size_scales_with_radius():
    assert marker_size(10, 100) == pytest.approx(4 * marker_size(5, 100))


def test_axes_use_screen_coordinates(renderer):
    assert renderer.ax.get_xlim() == (0, 800)
    assert renderer.ax.get_ylim() == (600, 0)


def test_initial_frame_shows_unassigned(renderer):
    colors = renderer.sample_artist.get_facecolors()

    assert len(colors) == len(renderer.session.samples)
    np.testing.assert_allclose(colors[0], to_rgba("pink"))
    assert "waiting" in renderer.ax.get_title()


def test_frames_drive_the_controller(renderer):
    renderer.frame()
    assert renderer.controller.elapsed == pytest.approx(0.5)

    renderer.frame()
    assert renderer.controller.iteration == 1 or renderer.controller.runs == 1

    clusters = renderer.session.samples.clusters
    colors = renderer.sample_artist.get_facecolors()
    np.testing.assert_allclose(colors[0], color_for(int(clusters[0])))
    np.testing.assert_allclose(renderer.centroid_artist.get_offsets(),
                               renderer.session.centroids.positions)


def test_title_reports_finished_run(renderer):
    while renderer.controller.runs == 0:
        renderer.frame()

    title = renderer.ax.get_title()
    assert "run 1" in title
    assert "inertia" in title


def test_wall_clock_elapsed():
    session = build_session(KMeansConfig(seed=1, verbose=False))
    times = iter([10.0, 10.25, 10.75])
    r = Renderer(session, clock=lambda: next(times))

    assert r.elapsed() == 0.0
    assert r.elapsed() == pytest.approx(0.25)
    assert r.elapsed() == pytest.approx(0.5)
    r.close()


def test_frames_until_runs_stops_after_tail(renderer):
    drawn = 0
    for _ in renderer.frames_until_runs(runs=1, tail=1):
        renderer.frame()
        drawn += 1

    assert renderer.controller.runs == 1
    assert renderer.frames_drawn == drawn
    assert drawn > 2


def test_save_records_whole_run(tmp_path):
    from PIL import Image

    session = build_session(KMeansConfig(seed=1, verbose=False, pacing_threshold=3.0,
                                         window_width=200, window_height=150,
                                         cluster_radius=10.0))
    r = Renderer(session)
    path = r.save(tmp_path / "run.gif", runs=1)
    r.close()

    assert session.controller.runs == 1
    with Image.open(path) as gif:
        assert gif.n_frames > 1
