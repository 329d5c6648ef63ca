"""layered_sample.py

Description of a layered plate: an ordered stack of anisotropic plies.

Conventions:
- Layers are ordered bottom to top (layer 0 carries the lower free face).
- Stiffness tensors are 6x6 Voigt matrices in the ply's own material axes [Pa].
- Orientation angles (phi, theta, psi) are z-x-z Euler angles [rad] giving the
  material axes in the plate frame (see `elastic_rotation.py`).

A Sample is not validated: matching array shapes and a positive thickness per
layer are preconditions for the solver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class Layer:
    C: np.ndarray
    rho: float
    h: float
    phi: float = 0.0
    theta: float = 0.0
    psi: float = 0.0
    name: str = ""


@dataclass(frozen=True)
class Sample:
    layers: Tuple[Layer, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "layers", tuple(self.layers))

    @property
    def n_layers(self) -> int:
        return len(self.layers)

    @property
    def h_tot(self) -> float:
        return float(sum(layer.h for layer in self.layers))


def lame_stiffness(lam: float, mu: float) -> np.ndarray:
    """Isotropic 6x6 Voigt stiffness from the Lame constants."""
    C = np.zeros((6, 6))
    C[:3, :3] = lam
    C[0, 0] = C[1, 1] = C[2, 2] = lam + 2.0 * mu
    C[3, 3] = C[4, 4] = C[5, 5] = mu
    return C


def isotropic_stiffness(E: float, nu: float) -> np.ndarray:
    mu = E / (2.0 * (1.0 + nu))
    lam = E * nu / ((1.0 + nu) * (1.0 - 2.0 * nu))
    return lame_stiffness(lam, mu)


def isotropic_layer(E: float, nu: float, rho: float, h: float, name: str = "") -> Layer:
    return Layer(C=isotropic_stiffness(E, nu), rho=float(rho), h=float(h), name=name)

