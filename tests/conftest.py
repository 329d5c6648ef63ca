"""Shared fixtures: an aluminium plate and a two-ply CFRP laminate."""

import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest

from layered_sample import Layer, Sample, isotropic_layer

AL_E = 70e9
AL_NU = 0.33
AL_RHO = 2700.0
AL_H = 1e-3


def cfrp_ply() -> np.ndarray:
    C = np.zeros((6, 6))
    C[0, 0] = 143.8e9
    C[1, 1] = C[2, 2] = 13.3e9
    C[0, 1] = C[1, 0] = C[0, 2] = C[2, 0] = 6.2e9
    C[1, 2] = C[2, 1] = 6.5e9
    C[3, 3] = 3.4e9
    C[4, 4] = C[5, 5] = 5.7e9
    return C


@pytest.fixture
def aluminium() -> Sample:
    return Sample(layers=(isotropic_layer(AL_E, AL_NU, AL_RHO, AL_H, name="Al"),))


@pytest.fixture
def laminate() -> Sample:
    ply = cfrp_ply()
    return Sample(
        layers=(
            Layer(C=ply, rho=1560.0, h=0.5e-3, phi=0.0),
            Layer(C=ply, rho=1560.0, h=0.5e-3, phi=np.pi / 4),
        )
    )


@pytest.fixture
def random_symmetric_stiffness() -> np.ndarray:
    rng = np.random.default_rng(7)
    A = rng.normal(size=(6, 6))
    return (A @ A.T + 6 * np.eye(6)) * 1e10
