"""elastic_rotation.py

Rotate a 6x6 Voigt stiffness tensor from ply material axes to the plate frame.

The ply orientation is given by z-x-z Euler angles (phi, theta, psi):

  R = Rz(phi) @ Rx(theta) @ Rz(psi)

The columns of R are the material axes expressed in plate coordinates, so a
fourth-order tensor transforms as C'_ijkl = R_ip R_jq R_kr R_ls C_pqrs. In Voigt
form this is C' = M C M^T with M the Bond matrix of R.
"""

from __future__ import annotations

import numpy as np

# Voigt index -> tensor index pair (0-based): 1<->11, 2<->22, 3<->33, 4<->23, 5<->13, 6<->12
VOIGT_PAIRS = ((0, 0), (1, 1), (2, 2), (1, 2), (0, 2), (0, 1))


def rot_x(a: float) -> np.ndarray:
    c, s = np.cos(a), np.sin(a)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rot_z(a: float) -> np.ndarray:
    c, s = np.cos(a), np.sin(a)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def euler_matrix(phi: float, theta: float, psi: float) -> np.ndarray:
    return rot_z(phi) @ rot_x(theta) @ rot_z(psi)


def bond_matrix(R: np.ndarray) -> np.ndarray:
    """6x6 Bond (stress) transformation matrix of the 3x3 rotation R.

    M[I, J] = R_ik R_jl            for a normal column J = (k, k)
    M[I, J] = R_ik R_jl + R_il R_jk for a shear column J = (k, l), k != l
    """
    R = np.asarray(R, dtype=float)
    M = np.zeros((6, 6))
    for I, (i, j) in enumerate(VOIGT_PAIRS):
        for J, (k, l) in enumerate(VOIGT_PAIRS):
            M[I, J] = R[i, k] * R[j, l]
            if k != l:
                M[I, J] += R[i, l] * R[j, k]
    return M


def rotate_elastic_constants(C: np.ndarray, phi: float = 0.0, theta: float = 0.0, psi: float = 0.0) -> np.ndarray:
    """Express a symmetric Voigt stiffness C in the plate frame.

    Symmetry of C is assumed, not checked.
    """
    C = np.asarray(C, dtype=float)
    if phi == 0.0 and theta == 0.0 and psi == 0.0:
        return C.copy()

    M = bond_matrix(euler_matrix(phi, theta, psi))
    Cr = M @ C @ M.T
    # M C M^T is symmetric analytically; remove rounding asymmetry
    return 0.5 * (Cr + Cr.T)
