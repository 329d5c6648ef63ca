"""system_assembly.py

Assemble the global matrices F1, G1, H1 of the Legendre dispersion problem
for one angular frequency.

With trial wavenumber k = i ka / lambda the discretised plate satisfies

  (lambda^2 G1 - lambda F1 - H1) a = 0

where a stacks the Legendre coefficients (3 displacement components per
order, leg_deg orders per ply, plies bottom to top). Rows come in a fixed
order:

1. bulk equations, 3 (leg_deg - 2) rows per ply
2. per interface: displacement continuity (3 rows), traction continuity (3 rows)
3. stress-free lower face (3 rows), stress-free upper face (3 rows)

which fills exactly n_nodes = 3 leg_deg n_layers rows.
"""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np

from legendre_kernels import pmd2pn_table, pmdpn_table, slope_at, value_at
from stroh_matrices import CA, RHOA, StrohMatrices

logger = logging.getLogger(__name__)


class AssemblyError(RuntimeError):
    pass


def frequency_scale(omega: float, ca: float = CA, rhoa: float = RHOA) -> float:
    """ka = omega sqrt(rhoa / Ca), the wavenumber normalisation at omega."""
    return float(omega) * np.sqrt(rhoa / ca)


def n_nodes_for(n_layers: int, leg_deg: int) -> int:
    return 3 * int(leg_deg) * int(n_layers)


def bulk_blocks(mats: StrohMatrices, leg_deg: int, ka: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """(H, F, G) bulk blocks of one ply, each 3(leg_deg-2) x 3 leg_deg."""
    n_test = leg_deg - 2
    h = mats.h

    orders = np.arange(leg_deg)
    diag = np.zeros((n_test, leg_deg))
    diag[np.arange(n_test), np.arange(n_test)] = 2.0 / (2 * orders[:n_test] + 1)

    Hs = np.kron(diag, mats.A1)
    Fs = np.kron(pmdpn_table(n_test, leg_deg), 2.0 / h * mats.BB / ka)
    Gs = np.kron(pmd2pn_table(n_test, leg_deg), 4.0 / h**2 * mats.CC / ka**2) + np.kron(diag, mats.A2)
    return Hs, Fs, Gs


def displacement_rows(leg_deg: int, side: int) -> np.ndarray:
    """3 x 3 leg_deg block evaluating the ply displacement on a face."""
    return np.kron(value_at(np.arange(leg_deg), side)[None, :], np.eye(3))


def traction_rows(mats: StrohMatrices, leg_deg: int, side: int, ka: float) -> Tuple[np.ndarray, np.ndarray]:
    """(F, G) traction blocks of one ply on its face with outward normal `side`."""
    orders = np.arange(leg_deg)
    Fs = -side * np.kron(value_at(orders, side)[None, :], mats.ABC)
    Gs = side * 2.0 / mats.h * np.kron(slope_at(orders, side)[None, :], mats.F33 / ka)
    return Fs, Gs


def assemble_system(
    omega: float,
    layers: Sequence[StrohMatrices],
    leg_deg: int,
    ca: float = CA,
    rhoa: float = RHOA,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (F1, G1, H1), each n_nodes x n_nodes, at angular frequency omega."""
    leg_deg = int(leg_deg)
    if leg_deg < 2:
        raise ValueError(f"Legendre degree must be >= 2, got {leg_deg}")

    n_layers = len(layers)
    n_nodes = n_nodes_for(n_layers, leg_deg)
    width = 3 * leg_deg
    ka = frequency_scale(omega, ca=ca, rhoa=rhoa)

    F1 = np.zeros((n_nodes, n_nodes))
    G1 = np.zeros((n_nodes, n_nodes))
    H1 = np.zeros((n_nodes, n_nodes))

    def cols(ply: int) -> slice:
        return slice(ply * width, (ply + 1) * width)

    row = 0

    # 1) bulk equations
    n_bulk = 3 * (leg_deg - 2)
    for ply, mats in enumerate(layers):
        Hs, Fs, Gs = bulk_blocks(mats, leg_deg, ka)
        rows = slice(row, row + n_bulk)
        H1[rows, cols(ply)] = Hs
        F1[rows, cols(ply)] = Fs
        G1[rows, cols(ply)] = Gs
        row += n_bulk

    # 2) interfaces: top face of ply joins bottom face of ply + 1
    for ply in range(n_layers - 1):
        rows = slice(row, row + 3)
        G1[rows, cols(ply)] = displacement_rows(leg_deg, +1)
        G1[rows, cols(ply + 1)] = -displacement_rows(leg_deg, -1)
        row += 3

        rows = slice(row, row + 3)
        F1[rows, cols(ply)], G1[rows, cols(ply)] = traction_rows(layers[ply], leg_deg, +1, ka)
        F1[rows, cols(ply + 1)], G1[rows, cols(ply + 1)] = traction_rows(layers[ply + 1], leg_deg, -1, ka)
        row += 3

    # 3) free outer faces
    rows = slice(row, row + 3)
    F1[rows, cols(0)], G1[rows, cols(0)] = traction_rows(layers[0], leg_deg, -1, ka)
    row += 3

    rows = slice(row, row + 3)
    last = n_layers - 1
    F1[rows, cols(last)], G1[rows, cols(last)] = traction_rows(layers[last], leg_deg, +1, ka)
    row += 3

    if row != n_nodes:
        raise AssemblyError(f"assembled {row} rows, expected {n_nodes}")

    logger.debug("assembled %dx%d system at omega=%.6g (ka=%.6g)", n_nodes, n_nodes, omega, ka)
    return F1, G1, H1
