"""Demo: dispersion curves of a 1 mm aluminium plate and a [0/90]s CFRP laminate.

Run:
  python3 -m pip install -e .
  python3 src/demo_dispersion_curves.py
"""

from __future__ import annotations

import logging

import numpy as np

from dispersion_curves import SolverOpts, dispersion_curves
from execution import LogProgress
from layered_sample import Layer, Sample, isotropic_layer
from logging_config import setup_logging
from output_io import save_plots


def cfrp_stiffness() -> np.ndarray:
    """Transversely isotropic T300/914-like ply, fibres along x1 [Pa]."""
    C = np.zeros((6, 6))
    C[0, 0] = 143.8e9
    C[1, 1] = C[2, 2] = 13.3e9
    C[0, 1] = C[0, 2] = 6.2e9
    C[1, 2] = 6.5e9
    C[1, 0], C[2, 0], C[2, 1] = C[0, 1], C[0, 2], C[1, 2]
    C[3, 3] = 3.4e9
    C[4, 4] = C[5, 5] = 5.7e9
    return C


def main():
    setup_logging(logging.INFO)

    aluminium = Sample(layers=(isotropic_layer(E=70e9, nu=0.33, rho=2700.0, h=1e-3, name="Al"),))

    ply = cfrp_stiffness()
    angles = (0.0, np.pi / 2, np.pi / 2, 0.0)
    laminate = Sample(layers=tuple(Layer(C=ply, rho=1560.0, h=0.25e-3, phi=a, name="CFRP") for a in angles))

    opts = SolverOpts()

    for label, sample in (("aluminium", aluminium), ("cfrp [0/90]s", laminate)):
        freq, k, c = dispersion_curves(
            sample,
            0.0,
            10e3,
            50,
            10,
            5,
            opts=opts,
            progress=LogProgress(every=10),
        )
        print(label, "lowest mode at", freq[-1], "Hz:", k[0, -1], "1/m,", c[0, -1], "m/s")
        save_plots(None, freq, k, c, show=True)


if __name__ == "__main__":
    main()
