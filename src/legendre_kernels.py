"""legendre_kernels.py

Closed-form Legendre inner products used by the weak-form assembly.

Displacements in each ply are expanded as u(z') = sum_n a_n P_n(z') on the
normalised coordinate z' in [-1, 1]. Projecting the governing equations onto
P_m needs

  PmPn(m, n)    = int P_m P_n   dz' = 2/(2n+1) delta_mn
  PmdPn(m, n)   = int P_m P_n'  dz'
  Pmd2Pn(m, n)  = int P_m P_n'' dz'

and the face values P_n(+-1), P_n'(+-1) for interface and boundary rows.
"""

from __future__ import annotations

import numpy as np


def pmpn(m: int, n: int) -> float:
    return 2.0 / (2 * n + 1) if m == n else 0.0


def pmdpn(m: int, n: int) -> float:
    """int_{-1}^{1} P_m(x) P_n'(x) dx.

    P_n' = sum (2k+1) P_k over k < n with n - k odd, so the integral is 2 when
    n > m and n + m is odd, and 0 otherwise.
    """
    if n > m and (n + m) % 2 == 1:
        return 2.0
    return 0.0


def pmd2pn(m: int, n: int) -> float:
    """int_{-1}^{1} P_m(x) P_n''(x) dx.

    P_n'' = sum (k + 1/2) (n(n+1) - k(k+1)) P_k over k <= n-2 with n - k even,
    so the integral is n(n+1) - m(m+1) in that case and 0 otherwise.
    """
    if n >= m + 2 and (n + m) % 2 == 0:
        return float(n * (n + 1) - m * (m + 1))
    return 0.0


def pmdpn_table(n_rows: int, n_cols: int) -> np.ndarray:
    m = np.arange(n_rows)[:, None]
    n = np.arange(n_cols)[None, :]
    return np.where((n > m) & ((n + m) % 2 == 1), 2.0, 0.0)


def pmd2pn_table(n_rows: int, n_cols: int) -> np.ndarray:
    m = np.arange(n_rows)[:, None]
    n = np.arange(n_cols)[None, :]
    mask = (n >= m + 2) & ((n + m) % 2 == 0)
    return np.where(mask, n * (n + 1) - m * (m + 1), 0).astype(float)


def value_at(n: np.ndarray | int, side: int) -> np.ndarray:
    """P_n(side) for side = +1 (upper face) or -1 (lower face)."""
    n = np.asarray(n)
    return np.where(side > 0, 1.0, (-1.0) ** n)


def slope_at(n: np.ndarray | int, side: int) -> np.ndarray:
    """P_n'(side) = side^(n+1) n(n+1)/2."""
    n = np.asarray(n)
    base = n * (n + 1) / 2.0
    return np.where(side > 0, base, (-1.0) ** (n + 1) * base)
