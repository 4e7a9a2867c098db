"""Linear part of the propagation: frequency grid and half step operator."""

import numpy as np

from . import kernels_cpu
from .utils import InvalidArgumentError, as_coefficients


def frequency_grid(NT: int, dt: float) -> np.ndarray:
    """Angular frequencies of the DFT of a NT points field.

    Positive frequencies come first, the negative ones start at index
    (NT - 1) // 2 + 1, like np.fft.fftfreq.

    Args:
        NT (int): Number of samples.
        dt (float): Time step.
    Returns:
        np.ndarray: The angular frequencies.
    """
    if NT < 1:
        raise InvalidArgumentError(f"NT should be at least 1, got {NT}.")
    if not dt > 0:
        raise InvalidArgumentError(f"dt should be positive, got {dt}.")
    k = np.arange(NT, dtype=np.float64)
    w = 2 * np.pi * k / (dt * NT)
    w[(NT - 1) // 2 + 1 :] -= 2 * np.pi / dt
    return w


def evaluate_coefficients(coefs: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Evaluate a loss or dispersion profile on the frequency grid.

    A single value is broadcast, NT values are used as is and any other
    length is taken as the Taylor coefficients of a series in w.

    Args:
        coefs (np.ndarray): The coefficients.
        w (np.ndarray): Angular frequencies.
    Returns:
        np.ndarray: The profile at every frequency.
    """
    coefs = as_coefficients(coefs)
    if coefs.size == 1:
        return np.full(w.size, coefs[0])
    if coefs.size == w.size:
        return coefs.copy()
    out = np.empty_like(w)
    kernels_cpu.taylor_series(coefs, w, out)
    return out


def halfstep(
    alpha: np.ndarray, beta: np.ndarray, w: np.ndarray, dz: float
) -> np.ndarray:
    """Build the transfer function of half a linear step.

    H = exp(-alpha(w) dz / 4) exp(-1j beta(w) dz / 2)

    Args:
        alpha (np.ndarray): Loss coefficients (power attenuation).
        beta (np.ndarray): Dispersion coefficients.
        w (np.ndarray): Angular frequencies.
        dz (float): Step size.
    Returns:
        np.ndarray: The half step transfer function.
    """
    a = evaluate_coefficients(alpha, w)
    b = evaluate_coefficients(beta, w)
    return np.exp(-a * dz / 4) * np.exp(-1j * b * dz / 2)
