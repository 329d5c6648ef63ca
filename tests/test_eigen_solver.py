import numpy as np
import pytest

from eigen_solver import (
    companion_matrices,
    eigenvalues_to_wavenumbers,
    reject_nonphysical,
    solve_wavenumbers,
    sort_roots,
)
from stroh_matrices import sample_matrices
from system_assembly import assemble_system, frequency_scale


def test_companion_layout():
    F1 = np.full((2, 2), 1.0)
    G1 = np.full((2, 2), 2.0)
    H1 = np.full((2, 2), 3.0)
    M1, M2 = companion_matrices(F1, G1, H1)
    assert M1.shape == M2.shape == (4, 4)
    np.testing.assert_array_equal(M1[:2, :2], F1)
    np.testing.assert_array_equal(M1[:2, 2:], -np.eye(2))
    np.testing.assert_array_equal(M1[2:, :2], -H1)
    np.testing.assert_array_equal(M1[2:, 2:], 0.0)
    np.testing.assert_array_equal(M2[:2, :2], G1)
    np.testing.assert_array_equal(M2[2:, 2:], np.eye(2))
    np.testing.assert_array_equal(M2[:2, 2:], 0.0)


def test_zero_and_infinite_eigenvalues_become_nan():
    k = eigenvalues_to_wavenumbers(np.array([0.0, np.inf, 2j]), ka=4.0)
    assert np.isnan(k[0]) and np.isnan(k[1])
    assert k[2] == pytest.approx(2.0)


def test_reject_nonphysical():
    k = np.array([3.0 + 0j, 2j, 1.0 + 1e-6j, -5.0 + 1e-12j, np.nan])
    out = reject_nonphysical(k)
    assert out[0] == 3.0
    assert np.isnan(out[1])  # zero real part
    assert np.isnan(out[2])  # attenuating
    assert out[3] == -5.0 + 1e-12j
    assert np.isnan(out[4])


def test_sort_by_modulus_nan_last():
    k = np.array([np.nan, -3.0, 1.0, np.nan, 3.0, -1.0])
    out = sort_roots(k)
    assert np.all(np.isnan(out[4:]))
    np.testing.assert_allclose(np.abs(out[:4]), [1.0, 1.0, 3.0, 3.0])


def test_scalar_quadratic_gives_plus_minus_ka():
    # lambda^2 g - lambda f - h = 0 with g = 1, f = 0, h = -1 -> lambda = +-i -> k = +-ka
    F1 = np.zeros((1, 1))
    G1 = np.ones((1, 1))
    H1 = -np.ones((1, 1))
    k = solve_wavenumbers(F1, G1, H1, ka=2.0, n_max=2)
    np.testing.assert_allclose(np.sort(k.real), [-2.0, 2.0])


def test_scalar_quadratic_evanescent_roots_are_rejected():
    # lambda = +-1 -> k purely imaginary
    k = solve_wavenumbers(np.zeros((1, 1)), np.ones((1, 1)), np.ones((1, 1)), ka=2.0, n_max=2)
    assert np.all(np.isnan(k))


def test_raw_roots_are_sorted_with_nan_last(aluminium):
    omega = 2 * np.pi * 100e3
    mats = sample_matrices(aluminium, 0.0)
    F1, G1, H1 = assemble_system(omega, mats, 10)
    k = solve_wavenumbers(F1, G1, H1, frequency_scale(omega))
    assert k.shape == (30,)

    finite = np.isfinite(k)
    assert finite.any()
    n_finite = int(finite.sum())
    # finite entries first, then only NaN
    assert finite[:n_finite].all() and not finite[n_finite:].any()
    assert np.all(np.diff(np.abs(k[:n_finite])) >= 0)


def test_roots_satisfy_the_quadratic_problem(aluminium):
    omega = 2 * np.pi * 50e3
    mats = sample_matrices(aluminium, 0.0)
    F1, G1, H1 = assemble_system(omega, mats, 8)
    ka = frequency_scale(omega)
    k = solve_wavenumbers(F1, G1, H1, ka)
    k0 = k[np.isfinite(k)][0]
    lam = 1j * ka / k0
    Q = lam**2 * G1 - lam * F1 - H1
    s = np.linalg.svd(Q, compute_uv=False)
    assert s[-1] / s[0] < 1e-8
