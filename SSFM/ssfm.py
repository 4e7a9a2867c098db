#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""SSFM Main module."""

import time
import warnings
from typing import Callable, Union

import numpy as np
import tqdm

from . import kernels_cpu
from .fftw import Workspace
from .linear import frequency_grid, halfstep
from .utils import (
    ConvergenceWarning,
    InvalidArgumentError,
    as_coefficients,
    check_length,
    check_steps,
    check_taylor_length,
    field_dtype,
)


class SSFM:
    """A class to solve the NLSE in an optical fiber"""

    # frames between warnings.warn and the user code
    _stacklevel = 2

    def __init__(
        self,
        dt: float,
        dz: float,
        alpha: Union[float, np.ndarray],
        beta: Union[float, np.ndarray],
        gamma: float,
        NT: int = 1024,
        traman: float = 0.0,
        toptical: float = 0.0,
        maxiter: int = 4,
        tol: float = 1e-5,
    ) -> None:
        """Instantiate the simulation.

        Solves an equation : du/dz = -alpha(w)/2 u - 1j beta(w) u
          - 1j gamma (|u|**2 u - traman u d|u|**2/dt
          + 1j toptical / (2 pi) d(|u|**2 u)/dt)
        where the linear terms are applied in the frequency domain.

        Args:
            dt (float): Time step.
            dz (float): Propagation step.
            alpha (float or np.ndarray): Power loss coefficient, either a
                single value or one value per frequency.
            beta (float or np.ndarray): Dispersion, either NT values (one
                per frequency) or the Taylor coefficients [beta0, beta1,
                ...] of beta(w).
            gamma (float): Nonlinear coefficient.
            NT (int, optional): Number of points of the field.
                Defaults to 1024.
            traman (float, optional): Raman response time. Defaults to 0.
            toptical (float, optional): Optical cycle time lambda / c used
                for self-steepening. Defaults to 0.
            maxiter (int, optional): Maximum number of iterations of the
                nonlinear step. Defaults to 4.
            tol (float, optional): Convergence tolerance of the nonlinear
                step. Defaults to 1e-5.
        """
        if NT < 1:
            raise InvalidArgumentError(f"NT should be at least 1, got {NT}.")
        self.NT = NT
        self.alpha = as_coefficients(alpha)
        self.beta = as_coefficients(beta)
        check_length(self.alpha, NT, "alpha")
        check_taylor_length(self.beta, NT, "beta")
        self.dt = dt
        self.dz = dz
        self.gamma = gamma
        self.traman = traman
        self.toptical = toptical
        self.maxiter = maxiter
        self.tol = tol
        self._check_iterations()
        # angular frequencies of the linear step
        self.w = frequency_grid(NT, dt)

    def _check_iterations(self) -> None:
        """Check the parameters of the nonlinear iteration."""
        if self.maxiter < 1:
            raise InvalidArgumentError(
                f"maxiter should be at least 1, got {self.maxiter}."
            )

    def _check_field(self, E_in: np.ndarray) -> np.ndarray:
        """Check the shape of the input field.

        Args:
            E_in (np.ndarray): Input field.
        Returns:
            np.ndarray: The field as a 1D array.
        """
        E_in = np.asarray(E_in)
        if E_in.size != self.NT:
            raise InvalidArgumentError(
                f"Shape mismatch: got {E_in.size} points, expected {self.NT}."
            )
        return E_in.ravel()

    def _build_propagator(self) -> np.ndarray:
        """Build the half step linear propagator.

        Returns:
            np.ndarray: the propagator of shape (1, NT)
        """
        return halfstep(self.alpha, self.beta, self.w, self.dz)[np.newaxis]

    def _prepare_workspace(self, E_in: np.ndarray, verbose: bool) -> Workspace:
        """Allocate the workspace and load the input field.

        Args:
            E_in (np.ndarray): Input field
            verbose (bool): Print planning messages.
        Returns:
            Workspace: The workspace of the call.
        """
        ws = Workspace(
            self.NT, channels=1, dtype=field_dtype(E_in), verbose=verbose
        )
        ws.u0[0] = E_in
        ws.u1[0] = E_in
        return ws

    def _take_components(self, ws: Workspace) -> np.ndarray:
        """Current field, as passed to the callbacks.

        Args:
            ws (Workspace): The workspace of the call.
        Returns:
            np.ndarray: The field
        """
        return ws.u1[0]

    def _output(self, ws: Workspace) -> np.ndarray:
        """Copy the propagated field out of the workspace.

        Args:
            ws (Workspace): The workspace of the call.
        Returns:
            np.ndarray: The output field
        """
        return ws.u1[0].copy()

    def _linear_step(
        self, out: np.ndarray, A: np.ndarray, propagator: np.ndarray
    ) -> None:
        """Apply the half step propagator in the frequency domain.

        Args:
            out (np.ndarray): Output array.
            A (np.ndarray): Field in the frequency domain.
            propagator (np.ndarray): Half step propagator.
        """
        np.multiply(A, propagator, out=out)

    def _nonlinear_step(self, ws: Workspace) -> None:
        """Compute the candidate uv from uhalf and the estimates u0, u1.

        Args:
            ws (Workspace): The workspace of the call.
        """
        g = self.gamma * self.dz / 2
        if self.traman == 0 and self.toptical == 0:
            kernels_cpu.nl_prop_kerr(
                ws.uv[0], ws.uhalf[0], ws.u0[0], ws.u1[0], g, 1 / ws.NT
            )
        else:
            kernels_cpu.nl_prop_raman(
                ws.uv[0],
                ws.uhalf[0],
                ws.u0[0],
                ws.u1[0],
                g,
                self.traman,
                self.toptical,
                self.dt,
                1 / ws.NT,
            )

    def _converged(self, ws: Workspace) -> bool:
        """Compare the candidate uv (unnormalized) to the estimate u1.

        Args:
            ws (Workspace): The workspace of the call.
        Returns:
            bool: True if the relative change is below tol.
        """
        num, denom = kernels_cpu.convergence_sums(ws.uv, ws.u1, 1 / ws.NT)
        if denom == 0:
            return num == 0
        return num / denom < self.tol

    def split_step(self, ws: Workspace, propagator: np.ndarray) -> bool:
        """Split step function for one propagation step.

        ws.ufft must hold the spectrum of the field at the beginning of the
        step. On return u0, u1 and ufft hold the field at the end of the step.

        Args:
            ws (Workspace): The workspace of the call.
            propagator (np.ndarray): Half step propagator.
        Returns:
            bool: True if the nonlinear iteration converged.
        """
        # first linear half step, uhalf keeps the NT factor of the ifft
        self._linear_step(ws.uhalf, ws.ufft, propagator)
        ws.plan_uhalf.inverse()
        converged = False
        for _ in range(self.maxiter):
            self._nonlinear_step(ws)
            ws.plan_uv.forward()
            # second linear half step
            self._linear_step(ws.ufft, ws.uv, propagator)
            ws.uv[:] = ws.ufft
            ws.plan_uv.inverse()
            converged = self._converged(ws)
            np.multiply(ws.uv, 1 / ws.NT, out=ws.u1)
            if converged:
                break
        ws.u0[:] = ws.u1
        return converged

    def out_field(
        self,
        E_in: np.ndarray,
        nz: int,
        verbose: bool = True,
        callback: Union[list[callable], callable] = None,
        callback_args: Union[list[tuple], tuple] = (),
    ) -> np.ndarray:
        """Propagate the field over nz steps.

        This function propagates the field E_in over a distance nz * dz by
        calling the split step function in a loop.
        A ConvergenceWarning is emitted for every step whose nonlinear
        iteration did not reach tol, the last estimate is used anyway.

        Args:
            E_in (np.ndarray): Input field.
            nz (int): Number of steps.
            verbose (bool, optional): Prints progress and time.
                Defaults to True.
            callback (callable, optional): Callback function called after
                each step as callback(self, A, z, i, *callback_args).
                Defaults to None.
            callback_args (tuple, optional): Additional arguments for the
                callback function.
        Returns:
            np.ndarray: Propagated field
        """
        E_in = self._check_field(E_in)
        nz = check_steps(nz)
        self._check_iterations()
        propagator = self._build_propagator()
        with self._prepare_workspace(E_in, verbose) as ws:
            propagator = propagator.astype(ws.uv.dtype)
            ws.ufft[:] = ws.u0
            ws.plan_ufft.forward()
            if verbose:
                pbar = tqdm.tqdm(
                    total=nz,
                    position=4,
                    desc="Propagation",
                    leave=False,
                    unit="step",
                )
            t0 = time.perf_counter()
            failures = 0
            for i in range(nz):
                if not self.split_step(ws, propagator):
                    failures += 1
                    warnings.warn(
                        f"Failed to converge to {self.tol} in "
                        f"{self.maxiter} iterations.",
                        ConvergenceWarning,
                        stacklevel=self._stacklevel,
                    )
                if callback is not None:
                    A = self._take_components(ws)
                    z = (i + 1) * self.dz
                    if isinstance(callback, Callable):
                        callback(self, A, z, i, *callback_args)
                    elif isinstance(callback, list) and isinstance(
                        callback[0], Callable
                    ):
                        for c, ca in zip(callback, callback_args):
                            c(self, A, z, i, *ca)
                    else:
                        raise ValueError(
                            "callbacks should be a callable or a list of "
                            "callables"
                        )
                if verbose:
                    pbar.update(1)
            t_cpu = time.perf_counter() - t0
            if verbose:
                pbar.close()
                print(f"\nTime spent to solve : {t_cpu} s (CPU)")
                if failures:
                    print(f"{failures} of {nz} steps did not converge.\n")
            return self._output(ws)


def propagate_scalar(
    u0: np.ndarray,
    dt: float,
    dz: float,
    nz: int,
    alpha: Union[float, np.ndarray],
    beta: Union[float, np.ndarray],
    gamma: float,
    traman: float = 0.0,
    toptical: float = 0.0,
    maxiter: int = 4,
    tol: float = 1e-5,
    verbose: bool = False,
) -> np.ndarray:
    """Propagate a field through a fiber with the split-step Fourier method.

    Args:
        u0 (np.ndarray): Input field, NT complex (or real) samples.
        dt (float): Time step.
        dz (float): Propagation step.
        nz (int): Number of steps.
        alpha (float or np.ndarray): Power loss, 1 or NT values.
        beta (float or np.ndarray): Dispersion, NT values or Taylor
            coefficients.
        gamma (float): Nonlinear coefficient.
        traman (float, optional): Raman response time. Defaults to 0.
        toptical (float, optional): Optical cycle time. Defaults to 0.
        maxiter (int, optional): Maximum number of iterations.
            Defaults to 4.
        tol (float, optional): Convergence tolerance. Defaults to 1e-5.
        verbose (bool, optional): Prints progress. Defaults to False.
    Returns:
        np.ndarray: Field after nz steps.
    """
    u0 = np.asarray(u0).ravel()
    nz = check_steps(nz)
    simu = SSFM(
        dt,
        dz,
        alpha,
        beta,
        gamma,
        NT=u0.size,
        traman=traman,
        toptical=toptical,
        maxiter=maxiter,
        tol=tol,
    )
    simu._stacklevel = 3
    return simu.out_field(u0, nz, verbose=verbose)
