"""selection.py

Post-processing utilities for selecting physically consistent roots.

Input is the raw matrix of complex wavenumbers (n_max x n_freqs) produced by
the per-frequency eigen-solves: each column sorted by modulus, NaN last.

Steps, applied in this order by `postprocess_wavenumbers`:
1) to cyclic units: |Re(k)| / 2 pi   [1/m]
2) ceiling: values above k_ceiling are numerically spurious -> NaN
3) decimation: the companion linearisation yields each propagating mode twice
   (+k and -k, adjacent after sorting). Keep one of each pair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

K_CEILING = 2500.0  # 1/m


@dataclass
class DecimateOpts:
    # "drop": keep rows 0, 2, 4, ... ; "average": mean of each (2i, 2i+1) pair
    strategy: str = "drop"
    # Log a warning when pair members differ by more than this (relative); None disables
    pair_tol_rel: float | None = None


def to_cyclic_wavenumber(k: np.ndarray) -> np.ndarray:
    return np.abs(np.real(k)) / (2.0 * np.pi)


def apply_wavenumber_ceiling(wn: np.ndarray, k_ceiling: float = K_CEILING) -> np.ndarray:
    wn = np.array(wn, dtype=float, copy=True)
    with np.errstate(invalid="ignore"):
        wn[wn > k_ceiling] = np.nan
    return wn


def pair_mismatch(wn: np.ndarray) -> np.ndarray:
    """Relative difference inside each (2i, 2i+1) row pair; NaN where either is NaN."""
    wn = np.asarray(wn, dtype=float)
    n_pairs = wn.shape[0] // 2
    a = wn[0 : 2 * n_pairs : 2]
    b = wn[1 : 2 * n_pairs : 2]
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.abs(a - b) / np.maximum(np.abs(a), np.abs(b))


def decimate_duplicate_roots(wn: np.ndarray, opts: DecimateOpts | None = None) -> np.ndarray:
    """Reduce the doubled root set to one row per physical mode."""
    opts = DecimateOpts() if opts is None else opts
    wn = np.asarray(wn, dtype=float)

    if opts.pair_tol_rel is not None:
        mismatch = pair_mismatch(wn)
        with np.errstate(invalid="ignore"):
            n_bad = int(np.sum(mismatch > opts.pair_tol_rel))
        if n_bad:
            logger.warning("%d duplicate root pairs differ by more than %g (relative)", n_bad, opts.pair_tol_rel)

    if opts.strategy == "drop":
        return wn[0::2].copy()

    if opts.strategy == "average":
        out = wn[0::2].copy()
        n_pairs = wn.shape[0] // 2
        out[:n_pairs] = 0.5 * (wn[0 : 2 * n_pairs : 2] + wn[1 : 2 * n_pairs : 2])
        return out

    raise ValueError(f"Unknown decimation strategy: {opts.strategy!r} (use 'drop' or 'average')")


def postprocess_wavenumbers(
    k_raw: np.ndarray,
    k_ceiling: float = K_CEILING,
    decimate: DecimateOpts | None = None,
) -> np.ndarray:
    """Raw complex roots (n_max x n_freqs) -> cyclic wavenumbers, one row per mode."""
    wn = to_cyclic_wavenumber(k_raw)
    wn = apply_wavenumber_ceiling(wn, k_ceiling)
    return decimate_duplicate_roots(wn, decimate)


def phase_velocity(freq: np.ndarray, wavenumber: np.ndarray) -> np.ndarray:
    """c = f / k element-wise; NaN where k is NaN or zero."""
    freq = np.asarray(freq, dtype=float).reshape(1, -1)
    wavenumber = np.asarray(wavenumber, dtype=float)
    out = np.full(wavenumber.shape, np.nan)
    ok = np.isfinite(wavenumber) & (wavenumber != 0)
    fb = np.broadcast_to(freq, wavenumber.shape)
    out[ok] = fb[ok] / wavenumber[ok]
    return out
