"""run_dispersion.py

CLI-ish script to compute dispersion curves of a layered plate and save
CSV / NPZ / plots.

Usage:
  python3 -m pip install -e .
  python3 src/run_dispersion.py --config examples/config.example.yml

Outputs:
- CSV: one row per (frequency, mode)
- NPZ: Freq, Wavenumber, PhaseVelocity arrays
- Plot: wavenumber and phase velocity vs frequency (optional)
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List

import numpy as np

from config_io import ConfigError, load_config, section
from dispersion_curves import SolverOpts, dispersion_curves
from execution import LogProgress, ParallelBackend, SequentialBackend
from layered_sample import Layer, Sample, isotropic_stiffness
from logging_config import setup_logging
from mode_tracking import TrackingOpts
from output_io import save_csv, save_npz, save_plots
from selection import DecimateOpts

logger = logging.getLogger(__name__)


def _build_stiffness(lcfg: Dict[str, Any], where: str) -> np.ndarray:
    if "C" in lcfg:
        C = np.asarray(lcfg["C"], dtype=float)
        if C.shape != (6, 6):
            raise ConfigError(f"{where}: C must be a 6x6 matrix, got shape {C.shape}")
        # Config stiffness may be given in GPa
        return C * float(lcfg.get("C_scale", 1.0))
    if "E" in lcfg:
        return isotropic_stiffness(float(lcfg["E"]), float(lcfg.get("nu", 0.3)))
    raise ConfigError(f"{where}: give either a full stiffness 'C' or isotropic 'E'/'nu'")


def build_sample(cfg: Dict[str, Any]) -> Sample:
    scfg = section(cfg, "sample")
    layers_cfg = scfg.get("layers", [])
    if not isinstance(layers_cfg, list) or not layers_cfg:
        raise ConfigError("sample.layers must be a non-empty list")

    # `repeat` stacks the listed plies several times (e.g. a symmetric laminate half)
    layers_cfg = layers_cfg * int(scfg.get("repeat", 1))
    if scfg.get("symmetric", False):
        layers_cfg = layers_cfg + layers_cfg[::-1]

    layers: List[Layer] = []
    for i, lcfg in enumerate(layers_cfg):
        where = f"sample.layers[{i}]"
        if not isinstance(lcfg, dict):
            raise ConfigError(f"{where} must be a mapping")
        layers.append(
            Layer(
                C=_build_stiffness(lcfg, where),
                rho=float(lcfg.get("rho", 2700.0)),
                h=float(lcfg.get("h", 1e-3)),
                phi=np.deg2rad(float(lcfg.get("phi_deg", 0.0))),
                theta=np.deg2rad(float(lcfg.get("theta_deg", 0.0))),
                psi=np.deg2rad(float(lcfg.get("psi_deg", 0.0))),
                name=str(lcfg.get("name", "")),
            )
        )

    return Sample(layers=tuple(layers))


def _build_solver_opts(cfg: Dict[str, Any]) -> SolverOpts:
    scfg = section(cfg, "solver")
    tcfg = section(cfg, "tracking")
    out = section(cfg, "output")

    pair_tol = scfg.get("pair_tol_rel")
    match_tol = tcfg.get("match_tol_rel")
    jump_factor = tcfg.get("jump_factor", 3.0)
    max_misses = tcfg.get("max_misses", 3)
    # `npz: null` or an empty path switches the NPZ output off
    npz = out.get("npz", "results/DispData.npz")

    return SolverOpts(
        imag_ratio_tol=float(scfg.get("imag_ratio_tol", 1e-8)),
        k_ceiling=float(scfg.get("k_ceiling", 2500.0)),
        decimate=DecimateOpts(
            strategy=str(scfg.get("decimate", "drop")),
            pair_tol_rel=None if pair_tol is None else float(pair_tol),
        ),
        tracking=TrackingOpts(
            match_tol_rel=None if match_tol is None else float(match_tol),
            extrapolate=bool(tcfg.get("extrapolate", True)),
            jump_factor=None if jump_factor is None else float(jump_factor),
            max_misses=None if max_misses is None else int(max_misses),
        ),
        save_path=str(npz) if npz else None,
        plot_path=out.get("plot"),
        x_units=str(out.get("x_units", "f")),
    )


def _build_backend(cfg: Dict[str, Any]):
    scfg = section(cfg, "solver")
    if bool(scfg.get("parallel", False)):
        return ParallelBackend(
            max_workers=int(scfg.get("workers", 4)),
            kind=str(scfg.get("executor", "thread")),
        )
    return SequentialBackend()


def main() -> None:
    ap = argparse.ArgumentParser(description="Legendre-polynomial dispersion curves of layered plates")
    ap.add_argument("--config", required=True, help="Path to .yml/.yaml/.json config")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    ap.add_argument("--log-file", default=None, help="Also write the log to this file")
    args = ap.parse_args()

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    cfg = load_config(args.config)
    sample = build_sample(cfg)
    opts = _build_solver_opts(cfg)
    backend = _build_backend(cfg)

    sweep = section(cfg, "sweep")
    prop_angle = np.deg2rad(float(sweep.get("prop_angle_deg", 0.0)))
    df = float(sweep.get("df_hz", 10e3))
    n_freqs = int(sweep.get("n_freqs", 50))
    leg_deg = int(sweep.get("leg_deg", 10))
    n_modes = int(sweep.get("n_modes", 5))

    freq, wavenumber, velocity = dispersion_curves(
        sample,
        prop_angle,
        df,
        n_freqs,
        leg_deg,
        n_modes,
        opts=opts,
        backend=backend,
        progress=LogProgress(every=max(1, n_freqs // 10)),
    )
    logger.info("%d of %d mode/frequency entries found", int(np.isfinite(wavenumber).sum()), wavenumber.size)

    out = section(cfg, "output")
    csv_path = out.get("csv", "results/dispersion.csv")
    if csv_path:
        save_csv(csv_path, freq, wavenumber, velocity)
    if opts.save_path:
        save_npz(opts.save_path, freq, wavenumber, velocity)
    if opts.plot_path:
        save_plots(opts.plot_path, freq, wavenumber, velocity, x_units=opts.x_units, h_tot=sample.h_tot)


if __name__ == "__main__":
    main()
