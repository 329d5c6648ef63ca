"""mode_tracking.py

Follow a fixed number of dispersion branches across the frequency sweep.

At every frequency the solver returns an unordered set of wavenumbers (one
per propagating mode). Sorting them by magnitude mixes branches wherever two
curves cross, so we *track* instead: each branch predicts its next value from
its own history, and candidates are matched to branches by nearest neighbour.

Prediction:
- two or more points: linear extrapolation in frequency (or column index),
  carried across columns the branch has missed;
- one point: constant phase velocity (k proportional to f) when frequencies
  are given, otherwise the last value.

Matching is a greedy global assignment: all (branch, candidate) distances are
sorted and taken smallest first. Ties go to the lower branch index, then to
the smaller candidate. A branch with a step history refuses a candidate
farther from its prediction than `jump_factor` typical steps; this is what
stops a branch whose mode has vanished from jumping onto another mode.

A branch that misses `max_misses` columns in a row ends and its row becomes
free. Candidates left over after all live branches have been served seed the
free rows in ascending order (this is how higher-order modes enter above
their cut-off frequency). A row freed at one column is only reseeded from the
next column on, so a row never changes mode between two adjacent finite
entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np


@dataclass
class TrackingOpts:
    # Reject a match whose relative jump exceeds this; None accepts any jump
    match_tol_rel: Optional[float] = None
    # Predict by linear extrapolation from the last two points instead of the last one
    extrapolate: bool = True
    # Reject a match farther from the prediction than this many typical steps; None disables
    jump_factor: Optional[float] = 3.0
    # Consecutive misses after which a branch ends; None keeps it forever
    max_misses: Optional[int] = 3


def _rel_tol_dist(a: float, b: float, tol_rel: float) -> bool:
    scale = max(1.0, abs(a), abs(b))
    return abs(a - b) <= tol_rel * scale


def _candidates(column: np.ndarray) -> List[float]:
    col = np.asarray(column, dtype=float)
    return sorted(float(x) for x in col[np.isfinite(col)])


def _predict(
    last: np.ndarray,
    last_x: np.ndarray,
    prev: np.ndarray,
    prev_x: np.ndarray,
    x: float,
    extrapolate: bool,
    scale_with_x: bool,
) -> Tuple[np.ndarray, np.ndarray]:
    """Predicted values and expected step size (NaN without a step history)."""
    pred = last.copy()
    step = np.full(last.shape, np.nan)

    two = np.isfinite(prev)
    slope = (last[two] - prev[two]) / (last_x[two] - prev_x[two])
    step[two] = np.abs(slope) * (x - last_x[two])
    if not extrapolate:
        return pred, step

    pred[two] = last[two] + slope * (x - last_x[two])
    one = np.isfinite(last) & ~two
    if scale_with_x:
        one &= last_x > 0.0
        pred[one] = last[one] * x / last_x[one]
    return pred, step


def _jump_limits(step: np.ndarray, jump_factor: Optional[float]) -> np.ndarray:
    """Largest accepted distance from the prediction, per branch."""
    limit = np.full(step.shape, np.inf)
    known = np.isfinite(step)
    if jump_factor is None or not known.any():
        return limit
    typical = float(np.median(step[known]))
    scale = np.maximum(step[known], typical)
    scale = np.maximum(scale, np.finfo(float).eps)
    limit[known] = jump_factor * scale
    return limit


def _match_modes(
    pred: np.ndarray, curr: List[float], match_tol_rel: Optional[float], limit: np.ndarray
) -> Tuple[np.ndarray, List[float]]:
    """Match current candidates to predicted branch values by nearest neighbour."""
    out = np.full(pred.shape, np.nan)

    pairs = []
    for j, pj in enumerate(pred):
        if not np.isfinite(pj):
            continue
        for idx, ck in enumerate(curr):
            dist = abs(ck - pj)
            if dist > limit[j]:
                continue
            if match_tol_rel is not None and not _rel_tol_dist(ck, pj, match_tol_rel):
                continue
            pairs.append((dist, j, idx))
    pairs.sort()

    used_branch = set()
    used_cand = set()
    for _, j, idx in pairs:
        if j in used_branch or idx in used_cand:
            continue
        out[j] = curr[idx]
        used_branch.add(j)
        used_cand.add(idx)

    remaining = [ck for idx, ck in enumerate(curr) if idx not in used_cand]
    return out, remaining


def track_modes(
    wavenumber: np.ndarray,
    n_modes: int,
    opts: Optional[TrackingOpts] = None,
    freq: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Reorder a (rows x n_freqs) wavenumber matrix into n_modes continuous branches.

    `freq` (n_freqs,) sets the abscissa for extrapolation; without it columns
    are taken as equally spaced.

    Returns an (n_modes x n_freqs) array; NaN where a branch has no value.
    """
    opts = TrackingOpts() if opts is None else opts
    wn = np.asarray(wavenumber, dtype=float)
    if wn.ndim != 2:
        raise ValueError(f"expected a 2D (modes x freqs) matrix, got shape {wn.shape}")

    n_modes = int(n_modes)
    n_freqs = wn.shape[1]
    if freq is None:
        xs = np.arange(n_freqs, dtype=float)
    else:
        xs = np.asarray(freq, dtype=float)
        if xs.shape != (n_freqs,):
            raise ValueError(f"freq must have shape ({n_freqs},), got {xs.shape}")
    out = np.full((n_modes, n_freqs), np.nan)

    last = np.full(n_modes, np.nan)
    last_x = np.full(n_modes, np.nan)
    prev = np.full(n_modes, np.nan)
    prev_x = np.full(n_modes, np.nan)
    misses = np.zeros(n_modes, dtype=int)
    born = np.zeros(n_modes, dtype=bool)

    for i in range(n_freqs):
        x = float(xs[i])
        curr = _candidates(wn[:, i])

        pred, step = _predict(last, last_x, prev, prev_x, x, opts.extrapolate, freq is not None)
        pred[~born] = np.nan
        limit = _jump_limits(step, opts.jump_factor)
        matched, remaining = _match_modes(pred, curr, opts.match_tol_rel, limit)

        free = [j for j in range(n_modes) if not born[j]]
        for j, r in zip(free, remaining):
            matched[j] = r
            born[j] = True

        out[:, i] = matched

        hit = np.isfinite(matched)
        prev[hit] = last[hit]
        prev_x[hit] = last_x[hit]
        last[hit] = matched[hit]
        last_x[hit] = x
        misses[hit] = 0

        missed = born & ~hit
        misses[missed] += 1
        if opts.max_misses is not None:
            ended = missed & (misses >= opts.max_misses)
            born[ended] = False
            misses[ended] = 0
            for arr in (last, last_x, prev, prev_x):
                arr[ended] = np.nan

    return out
