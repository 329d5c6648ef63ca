"""dispersion_curves.py

Dispersion curves (wavenumber and phase velocity vs frequency) of layered
anisotropic plates with the Legendre polynomial method.

For every frequency the through-thickness displacement of each ply is
expanded in Legendre polynomials up to degree leg_deg - 1, the weak form of
the wave equation plus interface and free-surface conditions is assembled
(`system_assembly.py`), and the resulting quadratic eigenproblem in the
wavenumber is solved (`eigen_solver.py`). Roots are then converted to cyclic
wavenumbers, de-duplicated and tracked across frequency (`selection.py`,
`mode_tracking.py`).

The maximum number of modes is 3/2 * leg_deg per ply; higher degrees resolve
higher frequencies at a cubic cost per step.

Failure policy: if the eigen-solve fails at one frequency, that column is
NaN and the sweep continues (logged as a warning).
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from config_io import ConfigError
from eigen_solver import IMAG_RATIO_TOL, solve_wavenumbers
from execution import ParallelBackend, Progress, SequentialBackend
from layered_sample import Sample
from mode_tracking import TrackingOpts, track_modes
from output_io import save_npz, save_plots
from selection import K_CEILING, DecimateOpts, phase_velocity, postprocess_wavenumbers
from stroh_matrices import CA, RHOA, StrohMatrices, sample_matrices
from system_assembly import assemble_system, frequency_scale, n_nodes_for

logger = logging.getLogger(__name__)

# Optional positional switches, in order
OPTIONAL_ARGS = ("save_on", "fig_on", "par_on")
PARALLEL_WORKERS = 4


@dataclass
class SolverOpts:
    # Normalisation
    ca: float = CA
    rhoa: float = RHOA
    # Root filtering
    imag_ratio_tol: float = IMAG_RATIO_TOL
    k_ceiling: float = K_CEILING
    decimate: DecimateOpts = field(default_factory=DecimateOpts)
    tracking: TrackingOpts = field(default_factory=TrackingOpts)
    # Outputs used by the save/plot switches
    save_path: Optional[str] = "DispData.npz"
    plot_path: Optional[str] = None
    x_units: str = "f"


def frequency_sweep(df: float, n_freqs: int) -> np.ndarray:
    """Angular frequencies omega_i = 2 pi df (i + 1), i = 0..n_freqs-1."""
    dw = 2.0 * np.pi * float(df)
    return dw + dw * np.arange(int(n_freqs), dtype=float)


def solve_frequency(
    omega: float,
    layers: Sequence[StrohMatrices],
    leg_deg: int,
    opts: SolverOpts,
) -> np.ndarray:
    """Sorted complex wavenumbers [rad/m] at one frequency, length n_nodes.

    Returns a NaN column if the eigen-solve fails.
    """
    n_nodes = n_nodes_for(len(layers), leg_deg)
    F1, G1, H1 = assemble_system(omega, layers, leg_deg, ca=opts.ca, rhoa=opts.rhoa)
    ka = frequency_scale(omega, ca=opts.ca, rhoa=opts.rhoa)

    try:
        return solve_wavenumbers(F1, G1, H1, ka, imag_ratio_tol=opts.imag_ratio_tol, n_max=n_nodes)
    except (np.linalg.LinAlgError, ValueError) as e:
        logger.warning("eigen-solve failed at f=%.6g Hz: %s", omega / (2.0 * np.pi), e)
        return np.full(n_nodes, np.nan + 1j * np.nan, dtype=np.complex128)


def _parse_optargs(optargs: Tuple) -> Tuple[bool, bool, bool]:
    if len(optargs) > len(OPTIONAL_ARGS):
        raise ConfigError(
            f"requires at most {len(OPTIONAL_ARGS)} optional inputs {OPTIONAL_ARGS}, got {len(optargs)}"
        )
    values = list(optargs) + [0] * (len(OPTIONAL_ARGS) - len(optargs))
    save_on, fig_on, par_on = (bool(v) for v in values)
    return save_on, fig_on, par_on


def dispersion_curves(
    sample: Sample,
    prop_angle: float,
    df: float,
    n_freqs: int,
    leg_deg: int,
    n_modes_to_track: int,
    *optargs,
    opts: Optional[SolverOpts] = None,
    backend=None,
    progress: Optional[Progress] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute dispersion curves of a layered plate.

    Parameters
    ----------
    sample : Sample
        Layer stack, bottom ply first.
    prop_angle : float
        Propagation direction w.r.t. the plate x1 axis [rad].
    df : float
        Frequency step [Hz]; the sweep is df, 2 df, ..., n_freqs df.
    n_freqs : int
        Number of frequency steps.
    leg_deg : int
        Legendre expansion degree per ply (>= 2).
    n_modes_to_track : int
        Number of branches returned.
    *optargs
        Up to three switches (save_on, fig_on, par_on). save_on writes
        opts.save_path, fig_on plots, par_on runs on a 4-worker pool.
    opts : SolverOpts, optional
    backend : SequentialBackend | ParallelBackend, optional
        Overrides the backend chosen by par_on.
    progress : callable(done, total), optional

    Returns
    -------
    freq : (n_freqs,) [Hz]
    wavenumber : (n_modes_to_track, n_freqs) cyclic wavenumber [1/m], NaN if absent
    phase_velocity : (n_modes_to_track, n_freqs) [m/s]
    """
    save_on, fig_on, par_on = _parse_optargs(optargs)
    opts = SolverOpts() if opts is None else opts
    if save_on and not opts.save_path:
        raise ConfigError("save_on needs opts.save_path")
    if backend is None:
        backend = ParallelBackend(max_workers=PARALLEL_WORKERS) if par_on else SequentialBackend()

    layers = sample_matrices(sample, prop_angle, ca=opts.ca, rhoa=opts.rhoa)
    n_nodes = n_nodes_for(len(layers), leg_deg)

    omegas = frequency_sweep(df, n_freqs)
    freq = omegas / (2.0 * np.pi)

    logger.info(
        "dispersion sweep: %d layers, leg_deg=%d, n_nodes=%d, %d frequencies up to %.6g Hz",
        len(layers), leg_deg, n_nodes, len(omegas), freq[-1] if len(freq) else 0.0,
    )

    k_raw = np.full((n_nodes, len(omegas)), np.nan + 1j * np.nan, dtype=np.complex128)

    def store(i: int, column: np.ndarray) -> None:
        k_raw[:, i] = column

    task = functools.partial(solve_frequency, layers=layers, leg_deg=int(leg_deg), opts=opts)
    backend.run(task, list(omegas), store, progress=progress)

    wavenumber = postprocess_wavenumbers(k_raw, k_ceiling=opts.k_ceiling, decimate=opts.decimate)
    wavenumber = track_modes(wavenumber, n_modes_to_track, opts.tracking, freq=freq)
    velocity = phase_velocity(freq, wavenumber)

    if save_on:
        save_npz(opts.save_path, freq, wavenumber, velocity)

    if fig_on:
        save_plots(opts.plot_path, freq, wavenumber, velocity, x_units=opts.x_units, h_tot=sample.h_tot, show=opts.plot_path is None)

    return freq, wavenumber, velocity
