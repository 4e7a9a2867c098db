import numpy as np

from . import kernels_cpu
from .ssfm import SSFM


def sample(
    simu: SSFM,
    A: np.ndarray,
    z: float,
    i: int,
    save_every: int,
    E_samples: np.ndarray,
) -> None:
    """Save samples of the field.

    This callback will save samples every save_every steps into the E_samples
    array.

    Args:
        simu (SSFM): Simulation object.
        A (np.ndarray): The current field.
        z (float): The current propagation distance.
        i (int): Step number.
        save_every (int): Number of propagation steps between each sample.
        E_samples (np.ndarray): Array to store the samples.
    """
    if i % save_every == 0:
        E_samples[i // save_every] = A.copy()


def norm(
    simu: SSFM,
    A: np.ndarray,
    z: float,
    i: int,
    save_every: int,
    norms: np.ndarray,
) -> None:
    """Save the energy of the field.

    This callback will save sum |A|**2 every save_every steps into the norms
    array. For the two polarizations the sum runs over both of them.

    Args:
        simu (SSFM): Simulation object.
        A (np.ndarray): The current field.
        z (float): The current propagation distance.
        i (int): Step number.
        save_every (int): Number of propagation steps between each sample.
        norms (np.ndarray): Array to store the energies.
    """
    if i % save_every == 0:
        A_sq = np.empty(A.shape, dtype=A.real.dtype)
        kernels_cpu.square_mod(A, A_sq)
        norms[i // save_every] = A_sq.sum()


def spectrum(
    simu: SSFM,
    A: np.ndarray,
    z: float,
    i: int,
    save_every: int,
    spectra: np.ndarray,
) -> None:
    """Save the power spectrum of the field.

    The spectrum is fftshifted so that it can be plotted against
    np.fft.fftshift(simu.w).

    Args:
        simu (SSFM): Simulation object.
        A (np.ndarray): The current field.
        z (float): The current propagation distance.
        i (int): Step number.
        save_every (int): Number of propagation steps between each sample.
        spectra (np.ndarray): Array to store the spectra.
    """
    if i % save_every == 0:
        A_hat = np.fft.fftshift(np.fft.fft(A, axis=-1), axes=-1)
        spectra[i // save_every] = A_hat.real**2 + A_hat.imag**2
