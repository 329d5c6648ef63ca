"""eigen_solver.py

Solve the quadratic eigenproblem (lambda^2 G1 - lambda F1 - H1) a = 0 through
its companion linearisation

  M1 = [[F1, -I], [-H1, 0]],   M2 = [[G1, 0], [0, I]],   M1 v = lambda M2 v

and turn the eigenvalues into trial wavenumbers k = i ka / lambda.

Only propagating roots are kept: k with zero real part, or with
|Im k| / |Re k| above a tolerance (evanescent or numerical noise), become NaN.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import scipy.linalg as sla

IMAG_RATIO_TOL = 1e-8


def companion_matrices(F1: np.ndarray, G1: np.ndarray, H1: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    n = F1.shape[0]
    eye = np.eye(n)
    zero = np.zeros((n, n))
    M1 = np.block([[F1, -eye], [-H1, zero]])
    M2 = np.block([[G1, zero], [zero, eye]])
    return M1, M2


def eigenvalues_to_wavenumbers(lam: np.ndarray, ka: float) -> np.ndarray:
    """k = i ka / lambda; zero or non-finite lambda maps to NaN."""
    lam = np.asarray(lam, dtype=np.complex128)
    k = np.full(lam.shape, np.nan + 1j * np.nan, dtype=np.complex128)
    ok = np.isfinite(lam) & (lam != 0)
    with np.errstate(divide="ignore", invalid="ignore"):
        k[ok] = 1j / lam[ok] * ka
    return k


def reject_nonphysical(k: np.ndarray, imag_ratio_tol: float = IMAG_RATIO_TOL) -> np.ndarray:
    """NaN out roots that are not real propagating wavenumbers."""
    k = np.array(k, dtype=np.complex128, copy=True)
    re = np.abs(k.real)
    im = np.abs(k.imag)
    with np.errstate(divide="ignore", invalid="ignore"):
        bad = (re == 0) | ~np.isfinite(k) | (im / re > imag_ratio_tol)
    k[bad] = np.nan + 1j * np.nan
    return k


def sort_roots(k: np.ndarray) -> np.ndarray:
    """Ascending by modulus, NaN last; each +-k pair ends up adjacent."""
    k = np.asarray(k, dtype=np.complex128)
    order = np.argsort(np.abs(k), kind="stable")
    return k[order]


def solve_wavenumbers(
    F1: np.ndarray,
    G1: np.ndarray,
    H1: np.ndarray,
    ka: float,
    imag_ratio_tol: float = IMAG_RATIO_TOL,
    n_max: int | None = None,
) -> np.ndarray:
    """Sorted, filtered complex wavenumbers (normalised back by ka) for one frequency.

    Returns the first n_max entries (default: n_nodes) of the 2 n_nodes roots.
    Raises numpy.linalg.LinAlgError when the eigen-solve does not converge.
    """
    M1, M2 = companion_matrices(F1, G1, H1)
    lam = sla.eigvals(M1, M2, overwrite_a=True)

    k = eigenvalues_to_wavenumbers(lam, ka)
    k = reject_nonphysical(k, imag_ratio_tol=imag_ratio_tol)
    k = sort_roots(k)

    n_max = F1.shape[0] if n_max is None else int(n_max)
    return k[:n_max]
