"""stroh_matrices.py

Per-ply 3x3 matrices of the Legendre dispersion formulation.

For each ply the rotated stiffness (normalised by CA) is contracted into the
blocks F_ij (F_ij[a, b] = C_{a i b j} in tensor form). Rotating them by the
propagation angle psi gives

  A1  = F11 c^2 + (F12 + F21) c s + F22 s^2
  BB  = (F13 + F31) c + (F23 + F32) s
  CC  = -F33
  ABC = F31 c + F32 s
  A2  = -rho I

with c = cos(psi), s = sin(psi). None of these depend on frequency, so they
are built once per sample and shared by all frequency steps.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from elastic_rotation import rotate_elastic_constants
from layered_sample import Layer, Sample

# Normalisation constants
CA = 1e11  # Pa
RHOA = 1e3  # kg/m^3

# Voigt index tables (1-based, "ab" -> C[a-1, b-1])
F11_INDEX = ((11, 16, 15), (16, 66, 56), (15, 56, 55))
F12_INDEX = ((16, 12, 14), (66, 26, 46), (56, 25, 45))
F22_INDEX = ((66, 26, 46), (26, 22, 24), (46, 24, 44))
F33_INDEX = ((55, 45, 35), (45, 44, 34), (35, 34, 33))
F31_INDEX = ((15, 56, 55), (14, 46, 45), (13, 36, 35))
F32_INDEX = ((56, 25, 45), (46, 24, 44), (36, 23, 34))


@dataclass(frozen=True)
class StrohMatrices:
    A1: np.ndarray
    BB: np.ndarray
    CC: np.ndarray
    ABC: np.ndarray
    A2: np.ndarray
    F33: np.ndarray
    rho: float  # normalised
    h: float  # m


def gather(C: np.ndarray, table: Tuple[Tuple[int, ...], ...]) -> np.ndarray:
    """Pick a 3x3 block out of a 6x6 Voigt matrix using a two-digit index table."""
    idx = np.asarray(table, dtype=int)
    rows = idx // 10 - 1
    cols = idx % 10 - 1
    return np.asarray(C, dtype=float)[rows, cols]


def build_stroh_matrices(
    C: np.ndarray,
    rho: float,
    h: float,
    psip: float,
    ca: float = CA,
    rhoa: float = RHOA,
) -> StrohMatrices:
    """Build the six per-ply matrices from a stiffness already in the plate frame."""
    Cn = np.asarray(C, dtype=float) / ca
    rho_n = float(rho) / rhoa

    F11 = gather(Cn, F11_INDEX)
    F12 = gather(Cn, F12_INDEX)
    F22 = gather(Cn, F22_INDEX)
    F33 = gather(Cn, F33_INDEX)
    F31 = gather(Cn, F31_INDEX)
    F32 = gather(Cn, F32_INDEX)

    F21 = F12.T
    F13 = F31.T
    F23 = F32.T

    c, s = np.cos(psip), np.sin(psip)

    return StrohMatrices(
        A1=F11 * c**2 + (F12 + F21) * c * s + F22 * s**2,
        BB=(F13 + F31) * c + (F23 + F32) * s,
        CC=-F33,
        ABC=F31 * c + F32 * s,
        A2=-rho_n * np.eye(3),
        F33=F33,
        rho=rho_n,
        h=float(h),
    )


def layer_matrices(layer: Layer, psip: float, ca: float = CA, rhoa: float = RHOA) -> StrohMatrices:
    C = rotate_elastic_constants(layer.C, layer.phi, layer.theta, layer.psi)
    return build_stroh_matrices(C, layer.rho, layer.h, psip, ca=ca, rhoa=rhoa)


def sample_matrices(sample: Sample, psip: float, ca: float = CA, rhoa: float = RHOA) -> Tuple[StrohMatrices, ...]:
    return tuple(layer_matrices(layer, psip, ca=ca, rhoa=rhoa) for layer in sample.layers)
