"""
Tests for the kmeans-live command line.
"""

import pytest

from kmeans_app import build_parser, config_from_args, main, run_headless
from kmeans_config import KMeansConfig
from kmeans_controller import build_session


def test_parser_defaults_follow_config():
    config = config_from_args(build_parser().parse_args([]))
    assert config == KMeansConfig()


def test_parser_maps_flags():
    args = build_parser().parse_args([
        "-k", "4", "--radius", "20", "--blocking", "--quiet",
        "--empty-policy", "reseed", "--seed", "3",
    ])
    config = config_from_args(args)

    assert config.num_clusters == 4
    assert config.cluster_radius == 20.0
    assert config.step_mode is False
    assert config.verbose is False
    assert config.empty_policy == "reseed"
    assert config.seed == 3


def test_run_headless_collects_summaries():
    session = build_session(KMeansConfig(seed=2, verbose=False))
    summaries = run_headless(session, runs=2, dt=0.25)

    assert [s.run for s in summaries] == [1, 2]
    assert summaries[-1].converged
    assert summaries[-1].iterations == 1


def test_main_headless(capsys):
    code = main(["--headless", "--seed", "4"])

    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY" in out
    assert "Final centroids" in out


def test_main_rejects_bad_config(capsys):
    code = main(["--headless", "-k", "0"])

    assert code == 2
    assert "num_clusters" in capsys.readouterr().err


@pytest.mark.parametrize("flag, value", [
    ("--radius", "inf"),
    ("--epsilon", "nan"),
    ("--pacing", "nan"),
])
def test_main_rejects_non_finite_values(flag, value, capsys):
    code = main(["--headless", "--quiet", flag, value])

    assert code == 2
    assert "finite" in capsys.readouterr().err


def test_main_rejects_unknown_policy():
    with pytest.raises(SystemExit):
        main(["--empty-policy", "nope"])


def test_main_saves_gif(tmp_path):
    path = tmp_path / "run.gif"
    code = main([
        "--save", str(path), "--quiet", "--seed", "1",
        "--width", "200", "--height", "150", "--radius", "10",
        "--interval", "250",
    ])

    assert code == 0
    assert path.exists()
    assert path.stat().st_size > 0
