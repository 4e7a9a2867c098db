import numpy as np
import pytest
from SSFM import (
    SSFM,
    VSSFM,
    ConvergenceWarning,
    InvalidArgumentError,
    norm,
    propagate_vector,
)
from SSFM.fftw import Workspace
from SSFM.polarization import rotate_in, rotate_out

N = 512
dt = 0.05
dz = 0.01
nz = 40
gamma = 1.0
beta_a = [0.0, 0.5, -1.0]
beta_b = [0.0, -0.5, -1.0]
t = (np.arange(N) - N // 2) * dt

FIBER = dict(
    alpha_a=0.0, alpha_b=0.0, beta_a=beta_a, beta_b=beta_b, gamma=gamma
)


def pulses() -> tuple:
    ux = 1.2 / np.cosh(t) + 0j
    uy = 0.7 * np.exp(-(t**2)) * np.exp(1j * 0.3)
    return ux, uy


def test_zero_steps() -> None:
    ux, uy = pulses()
    for method in ["elliptical", "circular"]:
        vx, vy = propagate_vector(
            ux, uy, dt, dz, 0, psi=0.4, chi=0.2, method=method, **FIBER
        )
        assert np.allclose(vx, ux) and np.allclose(
            vy, uy
        ), f"nz = 0 should return the input. (Method {method})"


def test_linear_birefringence() -> None:
    b = 3.0
    ux, uy = pulses()
    vx, vy = propagate_vector(
        ux, uy, dt, dz, nz, 0.0, 0.0, [b], [-b], 0.0
    )
    assert np.allclose(
        vx, ux * np.exp(-1j * b * dz * nz)
    ), "Wrong phase of the x eigenstate."
    assert np.allclose(
        vy, uy * np.exp(1j * b * dz * nz)
    ), "Wrong phase of the y eigenstate."


def test_circular_spm() -> None:
    amplitude = 1.1
    ua = np.full(N, amplitude, dtype=np.complex128)
    ub = np.zeros(N, dtype=np.complex128)
    ux, uy = rotate_out(ua, ub, np.pi / 4, 0.0)
    vx, vy = propagate_vector(
        ux, uy, dt, dz, nz, 0.0, 0.0, [0.0], [0.0], gamma, method="circular"
    )
    phase = 2 / 3 * gamma * dz * nz * amplitude**2
    ex, ey = rotate_out(ua * np.exp(-1j * phase), ub, np.pi / 4, 0.0)
    assert np.allclose(vx, ex) and np.allclose(
        vy, ey
    ), "Self phase modulation of a circular state is wrong."


def test_elliptical_matches_circular() -> None:
    ux, uy = pulses()
    out = {}
    for method in ["elliptical", "circular"]:
        out[method] = propagate_vector(
            ux, uy, dt, dz, nz, chi=np.pi / 4, method=method, **FIBER
        )
    for k in range(2):
        assert np.allclose(
            out["elliptical"][k], out["circular"][k]
        ), "Elliptical and circular methods disagree on circular eigenstates."


def test_linear_methods_agree() -> None:
    ux, uy = pulses()
    for chi, psi in [(0.0, 0.0), (0.3, 1.1), (-0.5, 0.2)]:
        out = {}
        for method in ["elliptical", "circular"]:
            out[method] = propagate_vector(
                ux,
                uy,
                dt,
                dz,
                nz,
                0.1,
                0.3,
                beta_a,
                beta_b,
                0.0,
                psi=psi,
                chi=chi,
                method=method,
            )
        for k in range(2):
            assert np.allclose(
                out["elliptical"][k], out["circular"][k]
            ), f"Linear propagation depends on the method. (chi {chi})"


def test_energy_conservation() -> None:
    ux, uy = pulses()
    energy = np.sum(np.abs(ux) ** 2 + np.abs(uy) ** 2)
    for method in ["elliptical", "circular"]:
        simu = VSSFM(
            dt,
            dz,
            0.0,
            0.0,
            beta_a,
            beta_b,
            gamma,
            NT=N,
            psi=0.5,
            chi=0.3,
            method=method,
        )
        norms = np.zeros(nz)
        vx, vy = simu.out_field(
            np.array([ux, uy]),
            nz,
            verbose=False,
            callback=norm,
            callback_args=(1, norms),
        )
        assert np.allclose(
            norms, energy, rtol=1e-10
        ), f"Energy is not conserved. (Method {method})"
        assert np.isclose(
            np.sum(np.abs(vx) ** 2 + np.abs(vy) ** 2), energy, rtol=1e-10
        ), f"Output energy is wrong. (Method {method})"


def test_single_precision() -> None:
    ux, uy = pulses()
    vx, vy = propagate_vector(
        ux.astype(np.complex64),
        uy.astype(np.complex64),
        dt,
        dz,
        nz,
        chi=0.2,
        **FIBER,
    )
    assert vx.dtype == np.complex64, "Single precision was not preserved."
    wx, wy = propagate_vector(ux, uy, dt, dz, nz, chi=0.2, **FIBER)
    assert np.allclose(vx, wx, atol=1e-4) and np.allclose(
        vy, wy, atol=1e-4
    ), "Single precision is wrong."


def test_invalid_arguments() -> None:
    ux, uy = pulses()
    with pytest.raises(InvalidArgumentError):
        propagate_vector(
            ux, uy[:-1], dt, dz, 1, 0.0, 0.0, beta_a, beta_b, gamma
        )
    with pytest.raises(InvalidArgumentError):
        propagate_vector(ux, uy, dt, dz, 1, method="linear", **FIBER)
    with pytest.raises(InvalidArgumentError):
        propagate_vector(
            ux, uy, dt, dz, 1, 0.0, [0.0, 0.0], beta_a, beta_b, gamma
        )
    with pytest.raises(InvalidArgumentError):
        propagate_vector(
            ux, uy, dt, dz, 1, 0.0, 0.0, beta_a, np.zeros(N + 1), gamma
        )
    with pytest.raises(InvalidArgumentError):
        propagate_vector(
            ux, uy, dt, dz, -2, 0.0, 0.0, beta_a, beta_b, gamma
        )
    with pytest.raises(InvalidArgumentError):
        propagate_vector(
            ux, uy, dt, dz, 1, 0.0, 0.0, beta_a, beta_b, gamma, maxiter=0
        )
    simu = VSSFM(dt, dz, 0.0, 0.0, beta_a, beta_b, gamma, NT=N)
    with pytest.raises(InvalidArgumentError):
        simu.out_field(ux, 1, verbose=False)


def test_elliptical_xpm() -> None:
    chi, psi = 0.3, 0.0
    amp_a, amp_b = 1.1, 0.6
    ua = np.full(N, amp_a, dtype=np.complex128)
    ub = np.full(N, amp_b * np.exp(1j * 0.4), dtype=np.complex128)
    ux, uy = rotate_out(ua, ub, chi, psi)
    vx, vy = propagate_vector(
        ux, uy, dt, dz, nz, 0.0, 0.0, [0.0], [0.0], gamma, psi=psi, chi=chi
    )
    va, vb = rotate_in(vx, vy, chi, psi)
    coef = gamma * dz / 3
    two_p_cos = (2 + np.cos(2 * chi) ** 2) / 2
    two_p_sin = (2 + 2 * np.sin(2 * chi) ** 2) / 2
    phase_a = coef * (two_p_cos * 2 * amp_a**2 + two_p_sin * 2 * amp_b**2)
    phase_b = coef * (two_p_cos * 2 * amp_b**2 + two_p_sin * 2 * amp_a**2)
    assert np.allclose(
        va, ua * np.exp(-1j * phase_a * nz)
    ), "Self and cross phase modulation of the a eigenstate is wrong."
    assert np.allclose(
        vb, ub * np.exp(-1j * phase_b * nz)
    ), "Self and cross phase modulation of the b eigenstate is wrong."


def test_convergence_criterion() -> None:
    NT = 8
    vector = VSSFM(1.0, 1.0, 0.0, 0.0, [0.0], [0.0], 0.0, NT=NT, tol=1e-5)
    scalar = SSFM(1.0, 1.0, 0.0, [0.0], 0.0, NT=NT, tol=1e-5)
    with Workspace(NT, channels=2) as ws:
        ws.u1[:] = 1
        # relative change of 1e-3: squared ratio 1e-6, norm ratio 1e-3
        ws.uv[:] = NT * (1 + 1e-3)
        assert not vector._converged(
            ws
        ), "Vector test should compare the ratio of the norms."
        assert scalar._converged(
            ws
        ), "Scalar test should compare the ratio of the squared norms."
        ws.uv[:] = NT * (1 + 1e-6)
        assert vector._converged(ws), "Vector test should have converged."
        ws.u1[:] = 0
        ws.uv[:] = 0
        assert vector._converged(ws), "Zero fields should be converged."
        ws.uv[:] = 1
        assert not vector._converged(
            ws
        ), "A zero estimate is only converged by a zero candidate."


class SquaredNormVSSFM(VSSFM):
    def _converged(self, ws: Workspace) -> bool:
        return SSFM._converged(self, ws)


def test_iteration_count() -> None:
    ux, uy = pulses()
    counts = {}
    for cls in [VSSFM, SquaredNormVSSFM]:
        simu = cls(
            dt,
            0.05,
            0.0,
            0.0,
            beta_a,
            beta_b,
            gamma,
            NT=N,
            chi=0.2,
            maxiter=20,
        )
        calls = []
        step = simu._nonlinear_step

        def counting_step(ws: Workspace) -> None:
            calls.append(1)
            step(ws)

        simu._nonlinear_step = counting_step
        simu.out_field(np.array([ux, uy]), 1, verbose=False)
        counts[cls.__name__] = len(calls)
    assert (
        counts["VSSFM"] > counts["SquaredNormVSSFM"]
    ), f"Norm ratio should need more iterations. (Counts {counts})"
    assert counts["VSSFM"] < 20, "Nonlinear iteration did not converge."


def test_convergence_warning() -> None:
    ux, uy = pulses()
    with pytest.warns(ConvergenceWarning) as record:
        propagate_vector(ux, uy, dt, dz, 1, maxiter=1, tol=1e-12, **FIBER)
    assert (
        record[0].filename == __file__
    ), "Warning should point at the caller of propagate_vector."
