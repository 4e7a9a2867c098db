"""Change of polarization basis between the lab frame and the fiber eigenbasis.

The eigenstates of a fiber with elliptical birefringence are described by
their ellipticity chi and orientation psi. The circular basis is the special
case chi = pi / 4, psi = 0.
"""

import numpy as np


def _rotation(chi: float, psi: float) -> np.ndarray:
    """Unitary matrix from (x, y) to (a, b) components."""
    cc = np.cos(psi) * np.cos(chi)
    ss = np.sin(psi) * np.sin(chi)
    sc = np.sin(psi) * np.cos(chi)
    cs = np.cos(psi) * np.sin(chi)
    return np.array(
        [[cc - 1j * ss, sc + 1j * cs], [-sc + 1j * cs, cc + 1j * ss]]
    )


def rotate_in(
    ux: np.ndarray, uy: np.ndarray, chi: float, psi: float
) -> tuple:
    """Rotate a field from the lab frame to the fiber eigenbasis.

    Real inputs are treated as complex inputs with a zero imaginary part.

    Args:
        ux (np.ndarray): x component.
        uy (np.ndarray): y component.
        chi (float): Ellipticity of the eigenstates.
        psi (float): Orientation of the eigenstates.
    Returns:
        tuple: The (a, b) components.
    """
    ux = np.asarray(ux, dtype=np.complex128)
    uy = np.asarray(uy, dtype=np.complex128)
    R = _rotation(chi, psi)
    ua = R[0, 0] * ux + R[0, 1] * uy
    ub = R[1, 0] * ux + R[1, 1] * uy
    return ua, ub


def rotate_out(
    ua: np.ndarray, ub: np.ndarray, chi: float, psi: float
) -> tuple:
    """Rotate a field from the fiber eigenbasis back to the lab frame.

    This is the exact inverse of rotate_in.

    Args:
        ua (np.ndarray): a component.
        ub (np.ndarray): b component.
        chi (float): Ellipticity of the eigenstates.
        psi (float): Orientation of the eigenstates.
    Returns:
        tuple: The (x, y) components.
    """
    ua = np.asarray(ua, dtype=np.complex128)
    ub = np.asarray(ub, dtype=np.complex128)
    R_inv = _rotation(chi, psi).conj().T
    ux = R_inv[0, 0] * ua + R_inv[0, 1] * ub
    uy = R_inv[1, 0] * ua + R_inv[1, 1] * ub
    return ux, uy


def build_circular_matrix(
    ha: np.ndarray, hb: np.ndarray, chi: float, psi: float
) -> np.ndarray:
    """Linear propagation matrix expressed in the circular basis.

    ha and hb are the half step transfer functions of the two elliptical
    eigenstates (chi, psi).

    Args:
        ha (np.ndarray): Transfer function of the a eigenstate.
        hb (np.ndarray): Transfer function of the b eigenstate.
        chi (float): Ellipticity of the eigenstates.
        psi (float): Orientation of the eigenstates.
    Returns:
        np.ndarray: The [[h11, h12], [h21, h22]] matrix of shape (2, 2, NT).
    """
    half_p_sin = 0.5 + 0.5 * np.sin(2 * chi)
    half_m_sin = 0.5 - 0.5 * np.sin(2 * chi)
    sincos = 0.5 * np.sin(2 * psi) * np.cos(2 * chi)
    coscos = 0.5 * np.cos(2 * psi) * np.cos(2 * chi)
    H = np.empty((2, 2, ha.size), dtype=np.complex128)
    H[0, 0] = half_p_sin * ha + half_m_sin * hb
    H[0, 1] = (sincos - 1j * coscos) * (ha - hb)
    H[1, 0] = (sincos + 1j * coscos) * (ha - hb)
    H[1, 1] = half_m_sin * ha + half_p_sin * hb
    return H
