import numpy as np
import pyfftw
import pytest
from SSFM import InvalidArgumentError, TransformProviderError, fftw

N = 32


def test_set_planner_effort() -> None:
    previous = pyfftw.config.PLANNER_EFFORT
    try:
        for effort, flag in fftw.PLANNER_EFFORTS.items():
            fftw.set_planner_effort(effort)
            assert (
                pyfftw.config.PLANNER_EFFORT == flag
            ), f"Planner effort not set. (Effort {effort})"
        with pytest.raises(InvalidArgumentError):
            fftw.set_planner_effort("impatient")
    finally:
        pyfftw.config.PLANNER_EFFORT = previous


def test_option() -> None:
    previous = pyfftw.config.PLANNER_EFFORT
    try:
        fftw.option("-estimate")
        assert (
            pyfftw.config.PLANNER_EFFORT == "FFTW_ESTIMATE"
        ), "Option -estimate not applied."
        fftw.option("-patient")
        assert (
            pyfftw.config.PLANNER_EFFORT == "FFTW_PATIENT"
        ), "Option -patient not applied."
        fftw.option("-forgetwisdom")
        for bad in ["-unknown", "estimate", ""]:
            with pytest.raises(InvalidArgumentError):
                fftw.option(bad)
    finally:
        pyfftw.config.PLANNER_EFFORT = previous


def test_wisdom_round_trip(tmp_path) -> None:
    path = tmp_path / "fft.wisdom"
    A = pyfftw.zeros_aligned(N, dtype=np.complex128)
    fftw.FourierTransform(A)
    fftw.save_wisdom(str(path))
    assert path.exists(), "Wisdom file was not written."
    fftw.forget_wisdom()
    assert fftw.load_wisdom(str(path)), "Wisdom was not imported."


def test_load_missing_wisdom(tmp_path) -> None:
    assert not fftw.load_wisdom(
        str(tmp_path / "missing.wisdom")
    ), "Missing wisdom should not be reported as imported."


def test_fourier_transform() -> None:
    rng = np.random.default_rng(0)
    A = pyfftw.zeros_aligned((2, N), dtype=np.complex128)
    plan = fftw.FourierTransform(A)
    data = rng.normal(size=(2, N)) + 1j * rng.normal(size=(2, N))
    A[:] = data
    plan.forward()
    assert np.allclose(
        A, np.fft.fft(data, axis=-1)
    ), "Forward transform is wrong."
    plan.inverse()
    assert np.allclose(A, N * data), "Inverse transform is not unnormalized."


def test_workspace() -> None:
    for channels in [1, 2]:
        for dtype in [np.complex64, np.complex128]:
            with fftw.Workspace(N, channels=channels, dtype=dtype) as ws:
                for buffer in [ws.ufft, ws.uhalf, ws.uv, ws.u0, ws.u1]:
                    assert buffer.shape == (
                        channels,
                        N,
                    ), f"Wrong buffer shape. (Channels {channels})"
                    assert buffer.dtype == dtype, "Wrong buffer dtype."
                assert ws.ufft.flags.c_contiguous, "Buffer not contiguous."
                ws.uv[:] = 1
                ws.plan_uv.forward()
                assert np.isclose(
                    ws.uv[0, 0], N
                ), "Workspace plans do not act on their buffer."
            assert ws.uv is None, "Workspace buffers were not released."
            assert ws.plan_uv is None, "Workspace plans were not released."


def test_load_corrupt_wisdom(tmp_path) -> None:
    for content in [b"not a pickle", b""]:
        path = tmp_path / "fft.wisdom"
        path.write_bytes(content)
        with pytest.raises(TransformProviderError):
            fftw.load_wisdom(str(path))


def test_wisdom_loaded_once(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(fftw, "_wisdom_loaded", False)
    monkeypatch.setattr(fftw, "load_wisdom", lambda: calls.append(1))
    fftw.ensure_wisdom()
    fftw.ensure_wisdom()
    with fftw.Workspace(N):
        pass
    assert len(calls) == 1, f"Wisdom loaded {len(calls)} times."
