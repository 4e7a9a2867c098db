from typing import Union

import numpy as np

from . import kernels_cpu
from .fftw import Workspace
from .linear import halfstep
from .polarization import build_circular_matrix, rotate_in, rotate_out
from .ssfm import SSFM
from .utils import (
    InvalidArgumentError,
    as_coefficients,
    check_length,
    check_steps,
    check_taylor_length,
    field_dtype,
)

METHODS = ("elliptical", "circular")


class VSSFM(SSFM):
    """A class to solve the coupled NLSE of the two polarizations"""

    def __init__(
        self,
        dt: float,
        dz: float,
        alpha: Union[float, np.ndarray],
        alpha2: Union[float, np.ndarray],
        beta: Union[float, np.ndarray],
        beta2: Union[float, np.ndarray],
        gamma: float,
        NT: int = 1024,
        psi: float = 0.0,
        chi: float = 0.0,
        method: str = "elliptical",
        maxiter: int = 4,
        tol: float = 1e-5,
    ) -> None:
        """Instantiates the class with all the relevant physical parameters

        The fiber eigenstates a and b are elliptical polarizations of
        ellipticity chi and orientation psi with respect to the x axis.
        The "elliptical" method propagates in this eigenbasis where the
        linear step is diagonal. The "circular" method propagates in the
        circular basis where the nonlinear step is simpler and the linear
        step becomes a 2x2 matrix.

        Args:
            dt (float): Time step.
            dz (float): Propagation step.
            alpha (float or np.ndarray): Power loss of the a eigenstate.
            alpha2 (float or np.ndarray): Power loss of the b eigenstate.
            beta (float or np.ndarray): Dispersion of the a eigenstate.
            beta2 (float or np.ndarray): Dispersion of the b eigenstate.
            gamma (float): Nonlinear coefficient.
            NT (int, optional): Number of points of each polarization.
                Defaults to 1024.
            psi (float, optional): Orientation of the eigenstates.
                Defaults to 0.
            chi (float, optional): Ellipticity of the eigenstates.
                Defaults to 0 (linear birefringence).
            method (str, optional): "elliptical" or "circular".
                Defaults to "elliptical".
            maxiter (int, optional): Maximum number of iterations of the
                nonlinear step. Defaults to 4.
            tol (float, optional): Convergence tolerance. Defaults to 1e-5.
        """
        if method not in METHODS:
            raise InvalidArgumentError(
                f"Incorrect method {method}: elliptical or circular only."
            )
        super().__init__(
            dt=dt,
            dz=dz,
            alpha=alpha,
            beta=beta,
            gamma=gamma,
            NT=NT,
            maxiter=maxiter,
            tol=tol,
        )
        # the b eigenstate has its own losses and dispersion
        self.alpha2 = as_coefficients(alpha2)
        self.beta2 = as_coefficients(beta2)
        check_length(self.alpha2, NT, "alpha2")
        check_taylor_length(self.beta2, NT, "beta2")
        self.psi = psi
        self.chi = chi
        self.method = method

    def _basis(self) -> tuple:
        """Polarization basis of the propagation.

        Returns:
            tuple: (chi, psi) of the basis
        """
        if self.method == "circular":
            return np.pi / 4, 0.0
        return self.chi, self.psi

    def _check_field(self, E_in: np.ndarray) -> np.ndarray:
        """Check the shape of the input fields.

        Args:
            E_in (np.ndarray): Input fields of shape (2, NT).
        Returns:
            np.ndarray: The fields
        """
        E_in = np.asarray(E_in)
        if E_in.shape != (2, self.NT):
            raise InvalidArgumentError(
                f"Shape mismatch: got {E_in.shape}, expected {(2, self.NT)}."
            )
        return E_in

    def _build_propagator(self) -> np.ndarray:
        """Build the propagators.

        Returns:
            np.ndarray: [ha, hb] of shape (2, NT) for the elliptical method,
                the [[h11, h12], [h21, h22]] matrix of shape (2, 2, NT) for
                the circular method.
        """
        ha = halfstep(self.alpha, self.beta, self.w, self.dz)
        hb = halfstep(self.alpha2, self.beta2, self.w, self.dz)
        if self.method == "circular":
            return build_circular_matrix(ha, hb, self.chi, self.psi)
        return np.array([ha, hb])

    def _prepare_workspace(self, E_in: np.ndarray, verbose: bool) -> Workspace:
        """Allocate the workspace and rotate the input to the eigenbasis.

        Args:
            E_in (np.ndarray): Input fields [Ex, Ey]
            verbose (bool): Print planning messages.
        Returns:
            Workspace: The workspace of the call.
        """
        ua, ub = rotate_in(E_in[0], E_in[1], *self._basis())
        ws = Workspace(
            self.NT, channels=2, dtype=field_dtype(E_in), verbose=verbose
        )
        ws.u0[0] = ua
        ws.u0[1] = ub
        ws.u1[:] = ws.u0
        return ws

    def _take_components(self, ws: Workspace) -> np.ndarray:
        """Current fields in the propagation basis, passed to the callbacks.

        Args:
            ws (Workspace): The workspace of the call.
        Returns:
            np.ndarray: The fields [ua, ub]
        """
        return ws.u1

    def _output(self, ws: Workspace) -> np.ndarray:
        """Rotate the propagated fields back to the lab frame.

        Args:
            ws (Workspace): The workspace of the call.
        Returns:
            np.ndarray: The fields [Ex, Ey]
        """
        ux, uy = rotate_out(ws.u1[0], ws.u1[1], *self._basis())
        return np.array([ux, uy], dtype=ws.u1.dtype)

    def _linear_step(
        self, out: np.ndarray, A: np.ndarray, propagator: np.ndarray
    ) -> None:
        """Apply the half step propagator in the frequency domain.

        Args:
            out (np.ndarray): Output array, must not alias A.
            A (np.ndarray): Fields in the frequency domain.
            propagator (np.ndarray): Half step propagator.
        """
        if self.method == "circular":
            kernels_cpu.prop_linear_circ(out, propagator, A)
        else:
            np.multiply(A, propagator, out=out)

    def _nonlinear_step(self, ws: Workspace) -> None:
        """Apply self and cross phase modulation.

        Args:
            ws (Workspace): The workspace of the call.
        """
        chi, _ = self._basis()
        coef = self.gamma * self.dz / 3
        two_p_cos = (2 + np.cos(2 * chi) ** 2) / 2
        two_p_sin = (2 + 2 * np.sin(2 * chi) ** 2) / 2
        kernels_cpu.nl_prop_vector(
            ws.uv,
            ws.uhalf,
            ws.u0,
            ws.u1,
            coef,
            two_p_cos,
            two_p_sin,
            1 / ws.NT,
        )

    def _converged(self, ws: Workspace) -> bool:
        """Joint convergence test of both polarizations.

        Unlike the scalar test, the ratio of the norms (not of the squared
        norms) is compared to tol.

        Args:
            ws (Workspace): The workspace of the call.
        Returns:
            bool: True if the relative change of both fields is below tol.
        """
        num, denom = kernels_cpu.convergence_sums(ws.uv, ws.u1, 1 / ws.NT)
        if denom == 0:
            return num == 0
        return np.sqrt(num / denom) < self.tol


def propagate_vector(
    u0x: np.ndarray,
    u0y: np.ndarray,
    dt: float,
    dz: float,
    nz: int,
    alpha_a: Union[float, np.ndarray],
    alpha_b: Union[float, np.ndarray],
    beta_a: Union[float, np.ndarray],
    beta_b: Union[float, np.ndarray],
    gamma: float,
    psi: float = 0.0,
    chi: float = 0.0,
    method: str = "elliptical",
    maxiter: int = 4,
    tol: float = 1e-5,
    verbose: bool = False,
) -> tuple:
    """Propagate both polarizations through a birefringent fiber.

    Args:
        u0x (np.ndarray): x polarization of the input field.
        u0y (np.ndarray): y polarization of the input field.
        dt (float): Time step.
        dz (float): Propagation step.
        nz (int): Number of steps.
        alpha_a (float or np.ndarray): Power loss of the a eigenstate.
        alpha_b (float or np.ndarray): Power loss of the b eigenstate.
        beta_a (float or np.ndarray): Dispersion of the a eigenstate.
        beta_b (float or np.ndarray): Dispersion of the b eigenstate.
        gamma (float): Nonlinear coefficient.
        psi (float, optional): Orientation of the eigenstates. Defaults to 0.
        chi (float, optional): Ellipticity of the eigenstates. Defaults to 0.
        method (str, optional): "elliptical" or "circular".
            Defaults to "elliptical".
        maxiter (int, optional): Maximum number of iterations. Defaults to 4.
        tol (float, optional): Convergence tolerance. Defaults to 1e-5.
        verbose (bool, optional): Prints progress. Defaults to False.
    Returns:
        tuple: The x and y polarizations after nz steps.
    """
    u0x = np.asarray(u0x).ravel()
    u0y = np.asarray(u0y).ravel()
    if u0x.size != u0y.size:
        raise InvalidArgumentError(
            f"Both polarizations should have the same length, got {u0x.size} "
            f"and {u0y.size}."
        )
    nz = check_steps(nz)
    simu = VSSFM(
        dt,
        dz,
        alpha_a,
        alpha_b,
        beta_a,
        beta_b,
        gamma,
        NT=u0x.size,
        psi=psi,
        chi=chi,
        method=method,
        maxiter=maxiter,
        tol=tol,
    )
    simu._stacklevel = 3
    E_in = np.array([u0x, u0y], dtype=np.result_type(u0x, u0y))
    u1 = simu.out_field(E_in, nz, verbose=verbose)
    return u1[0], u1[1]
