"""output_io.py

Persist and plot dispersion results.

- CSV: one row per (frequency, mode) with a finite wavenumber
- NPZ: the three arrays as returned by the solver
- Plots: wavenumber and phase velocity vs frequency (matplotlib)
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


def save_csv(path: str | Path, freq: np.ndarray, wavenumber: np.ndarray, phase_velocity: np.ndarray) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    rows = []
    for i, f in enumerate(freq):
        for m in range(wavenumber.shape[0]):
            k = wavenumber[m, i]
            if np.isfinite(k):
                rows.append((float(f), int(m), float(k), float(phase_velocity[m, i])))

    header = "freq_hz,mode,wavenumber_per_m,phase_velocity_m_per_s"
    data = np.asarray(rows, dtype=float).reshape(-1, 4)
    np.savetxt(path, data, delimiter=",", header=header, comments="")
    logger.info("wrote %d rows to %s", len(rows), path)


def save_npz(path: str | Path, freq: np.ndarray, wavenumber: np.ndarray, phase_velocity: np.ndarray) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez(path, Freq=freq, Wavenumber=wavenumber, PhaseVelocity=phase_velocity)
    logger.info("saved dispersion data to %s", path)


def load_npz(path: str | Path):
    with np.load(Path(path)) as data:
        return data["Freq"], data["Wavenumber"], data["PhaseVelocity"]


def save_plots(
    path: str | Path | None,
    freq: np.ndarray,
    wavenumber: np.ndarray,
    phase_velocity: np.ndarray,
    x_units: str = "f",
    h_tot: float | None = None,
    show: bool = False,
) -> None:
    """Two stacked panels: wavenumber and phase velocity vs frequency.

    x_units: "f" for frequency in kHz, "fd" for frequency-thickness in MHz*mm
    (needs h_tot in metres).
    """
    try:
        import matplotlib.pyplot as plt
    except ModuleNotFoundError:
        logger.warning("matplotlib not installed; skipping plots.")
        return

    if x_units == "f":
        x = np.asarray(freq) * 1e-3
        x_label = "Frequency [kHz]"
    elif x_units == "fd":
        if h_tot is None:
            raise ValueError("x_units='fd' needs the total thickness h_tot")
        # Hz * m == kHz * mm; MHz*mm therefore needs 1e-3
        x = np.asarray(freq) * h_tot * 1e-3
        x_label = "Frequency-thickness [MHz mm]"
    else:
        raise ValueError(f"Unknown x_units: {x_units!r} (use 'f' or 'fd')")

    fig, (ax_k, ax_c) = plt.subplots(2, 1, sharex=True)

    ax_k.plot(x, wavenumber.T, "*", markersize=2)
    ax_k.set_xlim(x[0], x[-1])
    ax_k.set_ylim(0, 500)
    ax_k.set_ylabel("Wavenumber [1/m]")
    ax_k.grid(True)

    ax_c.plot(x, phase_velocity.T, "*", markersize=2)
    ax_c.set_ylim(0, 1e4)
    ax_c.set_ylabel("Phase velocity [m/s]")
    ax_c.set_xlabel(x_label)
    ax_c.grid(True)

    fig.tight_layout()

    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=200)
        logger.info("saved plot to %s", path)

    if show:
        plt.show()
    else:
        plt.close(fig)
