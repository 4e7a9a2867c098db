import numbers
from typing import Union

import numpy as np
from scipy.constants import c


class InvalidArgumentError(ValueError):
    """Raised when the arguments of a propagation call are inconsistent."""


class TransformProviderError(RuntimeError):
    """Raised when FFTW fails to plan or to import wisdom."""


class ConvergenceWarning(RuntimeWarning):
    """Emitted when a step's nonlinear iteration did not reach tolerance."""


def optical_cycle_time(wvl: float) -> float:
    """Optical cycle time of the carrier.

    Args:
        wvl (float): Carrier wavelength in m.
    Returns:
        float: lambda / c in s, to be used as the self-steepening time.
    """
    return wvl / c


def check_length(coefs: np.ndarray, NT: int, name: str) -> None:
    """Check an alpha vector: a single value or one value per frequency.

    Args:
        coefs (np.ndarray): The coefficients.
        NT (int): Number of samples of the field.
        name (str): Name used in the error message.
    """
    if coefs.size not in (1, NT):
        raise InvalidArgumentError(
            f"Invalid vector length ({name}): got {coefs.size}, "
            f"expected 1 or {NT}."
        )


def check_taylor_length(coefs: np.ndarray, NT: int, name: str) -> None:
    """Check a beta vector: Taylor coefficients or one value per frequency.

    Args:
        coefs (np.ndarray): The coefficients.
        NT (int): Number of samples of the field.
        name (str): Name used in the error message.
    """
    if coefs.size < 1 or coefs.size > NT:
        raise InvalidArgumentError(
            f"Invalid vector length ({name}): got {coefs.size}, "
            f"expected between 1 and {NT}."
        )


def check_steps(nz: int) -> int:
    """Check the number of propagation steps.

    Args:
        nz (int): Number of steps.
    Returns:
        int: The number of steps as an int.
    """
    if isinstance(nz, bool) or not isinstance(nz, numbers.Integral):
        if not (isinstance(nz, numbers.Real) and float(nz).is_integer()):
            raise InvalidArgumentError(f"nz should be an integer, got {nz}.")
    nz = int(nz)
    if nz < 0:
        raise InvalidArgumentError(f"nz should be positive, got {nz}.")
    return nz


def field_dtype(E_in: np.ndarray) -> type:
    """Working precision of a propagation.

    Single precision inputs are propagated in single precision, anything
    else in double precision.

    Args:
        E_in (np.ndarray): Input field.
    Returns:
        type: np.complex64 or np.complex128
    """
    if E_in.dtype in (np.float32, np.complex64):
        return np.complex64
    return np.complex128


def as_coefficients(coefs: Union[float, np.ndarray]) -> np.ndarray:
    """Loss or dispersion coefficients as a flat float array.

    Args:
        coefs (float or np.ndarray): The coefficients.
    Returns:
        np.ndarray: The coefficients as a 1D array.
    """
    return np.atleast_1d(np.asarray(coefs, dtype=np.float64)).ravel()
