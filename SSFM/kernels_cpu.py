import numba
import numpy as np


@numba.njit(parallel=True, fastmath=True, cache=True, boundscheck=False)
def taylor_series(coefs: np.ndarray, w: np.ndarray, out: np.ndarray) -> None:
    """Evaluate sum_i coefs[i] * w**i / i! for every frequency.

    The terms are accumulated in ascending order with a running term
    w**i / i! so that high orders neither overflow nor lose precision.

    Args:
        coefs (np.ndarray): Taylor coefficients
        w (np.ndarray): Angular frequencies
        out (np.ndarray): Output array, same size as w
    """
    for j in numba.prange(w.size):
        acc = 0.0
        term = 1.0
        for i in range(coefs.size):
            acc += coefs[i] * term
            term *= w[j] / (i + 1)
        out[j] = acc


@numba.njit(parallel=True, fastmath=True, cache=True, boundscheck=False)
def nl_prop_kerr(
    uv: np.ndarray,
    uhalf: np.ndarray,
    u0: np.ndarray,
    u1: np.ndarray,
    g: float,
    scale: float,
) -> None:
    """Apply the Kerr nonlinear phase.

    Args:
        uv (np.ndarray): Output field
        uhalf (np.ndarray): Field after the first linear half step
        u0 (np.ndarray): Field at the beginning of the step
        u1 (np.ndarray): Current estimate of the field at the end of the step
        g (float): gamma * dz / 2
        scale (float): Normalization of uhalf
    """
    for i in numba.prange(uv.size):
        phase = g * (
            u0[i].real * u0[i].real
            + u0[i].imag * u0[i].imag
            + u1[i].real * u1[i].real
            + u1[i].imag * u1[i].imag
        )
        uv[i] = uhalf[i] * np.exp(-1j * phase) * scale


@numba.njit(fastmath=True, cache=True)
def _raman_shock(
    ua: complex, ub: complex, uc: complex, d_raman: float, d_shock: float
) -> tuple:
    """Nonlinear phase (real) and gain (imaginary) from three samples.

    Args:
        ua (complex): Previous sample
        ub (complex): Current sample
        uc (complex): Next sample
        d_raman (float): traman / (2 dt)
        d_shock (float): toptical / (4 pi dt)
    Returns:
        tuple: Real and imaginary parts of the nonlinear phase
    """
    ia = ua.real * ua.real + ua.imag * ua.imag
    ib = ub.real * ub.real + ub.imag * ub.imag
    ic = uc.real * uc.real + uc.imag * uc.imag
    # Re and Im of conj(ub) * uc and conj(ub) * ua
    rc = ub.real * uc.real + ub.imag * uc.imag
    ra = ub.real * ua.real + ub.imag * ua.imag
    pc = ub.real * uc.imag - ub.imag * uc.real
    pa = ub.real * ua.imag - ub.imag * ua.real
    nlp_re = ib - d_raman * (ic - ia) + d_shock * (pc - pa)
    nlp_im = -d_shock * (ic - ia + rc - ra)
    return nlp_re, nlp_im


@numba.njit(parallel=True, fastmath=True, cache=True, boundscheck=False)
def nl_prop_raman(
    uv: np.ndarray,
    uhalf: np.ndarray,
    u0: np.ndarray,
    u1: np.ndarray,
    g: float,
    traman: float,
    toptical: float,
    dt: float,
    scale: float,
) -> None:
    """Apply the Kerr, Raman and self-steepening terms.

    Time derivatives are centered finite differences with periodic
    boundaries.

    Args:
        uv (np.ndarray): Output field
        uhalf (np.ndarray): Field after the first linear half step
        u0 (np.ndarray): Field at the beginning of the step
        u1 (np.ndarray): Current estimate of the field at the end of the step
        g (float): gamma * dz / 2
        traman (float): Raman response time
        toptical (float): Optical cycle time
        dt (float): Time step
        scale (float): Normalization of uhalf
    """
    n = uv.size
    d_raman = traman / (2 * dt)
    d_shock = toptical / (4 * np.pi * dt)
    for i in numba.prange(n):
        im = (i - 1) % n
        ip = (i + 1) % n
        re0, im0 = _raman_shock(u0[im], u0[i], u0[ip], d_raman, d_shock)
        re1, im1 = _raman_shock(u1[im], u1[i], u1[ip], d_raman, d_shock)
        nlp_re = g * (re0 + re1)
        nlp_im = g * (im0 + im1)
        uv[i] = uhalf[i] * np.exp(-1j * nlp_re + nlp_im) * scale


@numba.njit(parallel=True, fastmath=True, cache=True, boundscheck=False)
def nl_prop_vector(
    uv: np.ndarray,
    uhalf: np.ndarray,
    u0: np.ndarray,
    u1: np.ndarray,
    coef: float,
    two_p_cos: float,
    two_p_sin: float,
    scale: float,
) -> None:
    """Apply self and cross phase modulation to both polarizations.

    Args:
        uv (np.ndarray): Output fields of shape (2, NT)
        uhalf (np.ndarray): Fields after the first linear half step
        u0 (np.ndarray): Fields at the beginning of the step
        u1 (np.ndarray): Current estimate of the fields at the end of the step
        coef (float): gamma * dz / 3
        two_p_cos (float): Self phase weight (2 + cos(2 chi)**2) / 2
        two_p_sin (float): Cross phase weight (2 + 2 sin(2 chi)**2) / 2
        scale (float): Normalization of uhalf
    """
    for i in numba.prange(uv.shape[-1]):
        ia = (
            u0[0, i].real * u0[0, i].real
            + u0[0, i].imag * u0[0, i].imag
            + u1[0, i].real * u1[0, i].real
            + u1[0, i].imag * u1[0, i].imag
        )
        ib = (
            u0[1, i].real * u0[1, i].real
            + u0[1, i].imag * u0[1, i].imag
            + u1[1, i].real * u1[1, i].real
            + u1[1, i].imag * u1[1, i].imag
        )
        phase_a = coef * (two_p_cos * ia + two_p_sin * ib)
        phase_b = coef * (two_p_cos * ib + two_p_sin * ia)
        uv[0, i] = uhalf[0, i] * np.exp(-1j * phase_a) * scale
        uv[1, i] = uhalf[1, i] * np.exp(-1j * phase_b) * scale


@numba.njit(parallel=True, fastmath=True, cache=True, boundscheck=False)
def prop_linear_circ(out: np.ndarray, H: np.ndarray, A: np.ndarray) -> None:
    """Apply the 2x2 linear propagation matrix.

    Args:
        out (np.ndarray): Output fields of shape (2, NT), must not alias A
        H (np.ndarray): Propagation matrix of shape (2, 2, NT)
        A (np.ndarray): Input fields of shape (2, NT)
    """
    for i in numba.prange(A.shape[-1]):
        out[0, i] = H[0, 0, i] * A[0, i] + H[0, 1, i] * A[1, i]
        out[1, i] = H[1, 0, i] * A[0, i] + H[1, 1, i] * A[1, i]


@numba.njit(parallel=True, fastmath=True, cache=True, boundscheck=False)
def convergence_sums(
    A: np.ndarray, A_prev: np.ndarray, scale: float
) -> tuple:
    """Squared norms used by the convergence test.

    Args:
        A (np.ndarray): Unnormalized candidate field
        A_prev (np.ndarray): Previous (normalized) estimate
        scale (float): Normalization of A
    Returns:
        tuple: sum |A*scale - A_prev|^2 and sum |A_prev|^2
    """
    a = A.ravel()
    b = A_prev.ravel()
    num = 0.0
    denom = 0.0
    for i in numba.prange(a.size):
        dr = a[i].real * scale - b[i].real
        di = a[i].imag * scale - b[i].imag
        num += dr * dr + di * di
        denom += b[i].real * b[i].real + b[i].imag * b[i].imag
    return num, denom


@numba.njit(parallel=True, fastmath=True, cache=True, boundscheck=False)
def square_mod(A: np.ndarray, A_sq: np.ndarray) -> None:
    """Compute the square modulus of the field

    Args:
        A (np.ndarray): The field
        A_sq (np.ndarray): The modulus squared of the field

    Returns:
        None
    """
    A = A.ravel()
    A_sq = A_sq.ravel()
    for i in numba.prange(A.size):
        A_sq[i] = A[i].real * A[i].real + A[i].imag * A[i].imag
