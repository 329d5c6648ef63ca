import json
import sys
from pathlib import Path

import numpy as np
import pytest

import run_dispersion
from config_io import ConfigError, load_config
from output_io import save_csv
from run_dispersion import _build_backend, _build_solver_opts, build_sample
from execution import ParallelBackend, SequentialBackend

EXAMPLES = Path(__file__).resolve().parents[1] / "examples"

ISO = {"name": "Al", "E": 70e9, "nu": 0.33, "rho": 2700.0, "h": 1e-3}


def test_load_json(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"sample": {"layers": [ISO]}}), encoding="utf-8")
    assert load_config(path)["sample"]["layers"][0]["E"] == 70e9


def test_load_yaml(tmp_path):
    path = tmp_path / "cfg.yml"
    path.write_text("sweep:\n  df_hz: 5.0e3\n  n_freqs: 3\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg["sweep"]["n_freqs"] == 3


def test_unsupported_extension(tmp_path):
    path = tmp_path / "cfg.toml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_build_isotropic_sample():
    sample = build_sample({"sample": {"layers": [ISO]}})
    assert sample.n_layers == 1
    assert sample.h_tot == pytest.approx(1e-3)
    layer = sample.layers[0]
    assert layer.name == "Al"
    assert layer.C[5, 5] == pytest.approx(70e9 / (2 * 1.33))


def test_build_full_stiffness_in_gpa_with_angles():
    C = np.eye(6).tolist()
    cfg = {"sample": {"layers": [{"C": C, "C_scale": 1e9, "rho": 1500.0, "h": 2e-4, "phi_deg": 90.0}]}}
    layer = build_sample(cfg).layers[0]
    np.testing.assert_allclose(layer.C, 1e9 * np.eye(6))
    assert layer.phi == pytest.approx(np.pi / 2)


def test_symmetric_and_repeated_stacks():
    a = dict(ISO, name="a")
    b = dict(ISO, name="b", h=2e-3)
    sample = build_sample({"sample": {"layers": [a, b], "repeat": 2, "symmetric": True}})
    assert [layer.name for layer in sample.layers] == ["a", "b", "a", "b", "b", "a", "b", "a"]
    assert sample.h_tot == pytest.approx(12e-3)


@pytest.mark.parametrize(
    "cfg",
    [
        {},
        {"sample": {"layers": []}},
        {"sample": {"layers": [{"rho": 1.0}]}},
        {"sample": {"layers": [{"C": [[1, 2], [3, 4]]}]}},
        {"sample": {"layers": ["not a mapping"]}},
        {"sample": [1, 2]},
    ],
)
def test_bad_sample_configs(cfg):
    with pytest.raises(ConfigError):
        build_sample(cfg)


def test_solver_opts_from_config():
    cfg = {
        "solver": {"k_ceiling": 1000.0, "decimate": "average", "pair_tol_rel": 1e-6},
        "tracking": {"extrapolate": True, "match_tol_rel": 0.5},
        "output": {"npz": "out/d.npz", "plot": "out/p.png", "x_units": "fd"},
    }
    opts = _build_solver_opts(cfg)
    assert opts.k_ceiling == 1000.0
    assert opts.decimate.strategy == "average"
    assert opts.decimate.pair_tol_rel == 1e-6
    assert opts.tracking.extrapolate is True
    assert opts.tracking.match_tol_rel == 0.5
    assert opts.save_path == "out/d.npz"
    assert opts.plot_path == "out/p.png"
    assert opts.x_units == "fd"


def test_backend_from_config():
    assert isinstance(_build_backend({}), SequentialBackend)
    backend = _build_backend({"solver": {"parallel": True, "workers": 2}})
    assert isinstance(backend, ParallelBackend)
    assert backend.max_workers == 2


def test_save_csv_skips_missing_entries(tmp_path):
    path = tmp_path / "d.csv"
    freq = np.array([1e3, 2e3])
    k = np.array([[1.0, np.nan], [2.0, 4.0]])
    c = freq / k
    save_csv(path, freq, k, c)
    data = np.loadtxt(path, delimiter=",", skiprows=1)
    assert data.shape == (3, 4)
    np.testing.assert_allclose(data[0], [1e3, 0, 1.0, 1e3])


def test_main_end_to_end(tmp_path, monkeypatch):
    cfg = {
        "sample": {"layers": [ISO]},
        "sweep": {"df_hz": 20e3, "n_freqs": 3, "leg_deg": 6, "n_modes": 3},
        "output": {
            "csv": str(tmp_path / "d.csv"),
            "npz": str(tmp_path / "d.npz"),
            "plot": str(tmp_path / "d.png"),
        },
    }
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(cfg), encoding="utf-8")

    monkeypatch.setattr(run_dispersion, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(sys, "argv", ["run_dispersion", "--config", str(path)])
    run_dispersion.main()

    assert (tmp_path / "d.csv").exists()
    assert (tmp_path / "d.npz").exists()
    assert (tmp_path / "d.png").exists()


@pytest.mark.parametrize("name", ["aluminium_plate.json", "config.example.yml"])
def test_shipped_example_configs_build(name):
    cfg = load_config(EXAMPLES / name)
    sample = build_sample(cfg)
    opts = _build_solver_opts(cfg)
    assert sample.n_layers >= 1
    assert sample.layers[0].name == "Al"
    assert opts.save_path.endswith(".npz")


def test_tracking_defaults_from_config():
    tracking = _build_solver_opts({}).tracking
    assert tracking.extrapolate is True
    assert tracking.jump_factor == 3.0
    assert tracking.max_misses == 3

    tracking = _build_solver_opts({"tracking": {"jump_factor": None, "max_misses": None}}).tracking
    assert tracking.jump_factor is None
    assert tracking.max_misses is None


@pytest.mark.parametrize("npz", [None, ""])
def test_null_npz_path_switches_npz_output_off(npz):
    assert _build_solver_opts({"output": {"npz": npz}}).save_path is None


def test_main_skips_npz_when_path_is_null(tmp_path, monkeypatch):
    cfg = {
        "sample": {"layers": [ISO]},
        "sweep": {"df_hz": 20e3, "n_freqs": 2, "leg_deg": 6, "n_modes": 3},
        "output": {"csv": str(tmp_path / "d.csv"), "npz": None},
    }
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(cfg), encoding="utf-8")

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(run_dispersion, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(sys, "argv", ["run_dispersion", "--config", str(path)])
    run_dispersion.main()

    assert (tmp_path / "d.csv").exists()
    assert not (tmp_path / "None").exists()
    assert not list(tmp_path.rglob("*.npz"))
