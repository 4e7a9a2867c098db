"""FFTW plans, per call workspace and wisdom management."""

import multiprocessing
import pickle
import threading

import numpy as np
import pyfftw

from .utils import InvalidArgumentError, TransformProviderError

pyfftw.config.NUM_THREADS = multiprocessing.cpu_count()
pyfftw.config.PLANNER_EFFORT = "FFTW_MEASURE"

WISDOM_FILE = "fft.wisdom"
PLANNER_EFFORTS = {
    "estimate": "FFTW_ESTIMATE",
    "measure": "FFTW_MEASURE",
    "patient": "FFTW_PATIENT",
    "exhaustive": "FFTW_EXHAUSTIVE",
}

_wisdom_lock = threading.Lock()
_wisdom_loaded = False


def load_wisdom(path: str = None) -> bool:
    """Import FFTW wisdom from a file.

    Args:
        path (str, optional): Wisdom file. Defaults to WISDOM_FILE.
    Returns:
        bool: True if wisdom was imported.
    """
    if path is None:
        path = WISDOM_FILE
    try:
        with open(path, "rb") as file:
            wisdom = pickle.load(file)
    except FileNotFoundError:
        print("No FFT wisdom found, starting over ...")
        return False
    except (pickle.UnpicklingError, EOFError) as err:
        raise TransformProviderError(
            f"Could not read wisdom file {path}."
        ) from err
    print(f"Importing FFTW wisdom (file = {path}).")
    try:
        success = pyfftw.import_wisdom(wisdom)
    except (TypeError, ValueError) as err:
        raise TransformProviderError("Could not import wisdom.") from err
    if not success[0]:
        raise TransformProviderError("Could not import wisdom.")
    return True


def save_wisdom(path: str = None) -> None:
    """Export the accumulated FFTW wisdom to a file.

    Args:
        path (str, optional): Wisdom file. Defaults to WISDOM_FILE.
    """
    if path is None:
        path = WISDOM_FILE
    print(f"Exporting FFTW wisdom (file = {path}).")
    with open(path, "wb") as file:
        pickle.dump(pyfftw.export_wisdom(), file)


def forget_wisdom() -> None:
    """Drop the wisdom accumulated in memory."""
    pyfftw.forget_wisdom()


def ensure_wisdom() -> None:
    """Load the wisdom file once per process.

    Only the first call attempts the load, even if it raised: later calls
    never retry. Use load_wisdom to import wisdom explicitly.
    """
    global _wisdom_loaded
    with _wisdom_lock:
        if not _wisdom_loaded:
            _wisdom_loaded = True
            load_wisdom()


def set_planner_effort(effort: str) -> None:
    """Select how hard FFTW searches for a fast plan.

    Args:
        effort (str): "estimate", "measure", "patient" or "exhaustive".
    """
    try:
        pyfftw.config.PLANNER_EFFORT = PLANNER_EFFORTS[effort]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown planner effort {effort}, available efforts are "
            f"{', '.join(PLANNER_EFFORTS)}."
        ) from None


def option(argstr: str) -> None:
    """Apply a maintenance option given as a string.

    Args:
        argstr (str): One of -savewisdom, -forgetwisdom, -loadwisdom,
            -estimate, -measure, -patient or -exhaustive.
    """
    if argstr == "-savewisdom":
        save_wisdom()
    elif argstr == "-forgetwisdom":
        forget_wisdom()
    elif argstr == "-loadwisdom":
        load_wisdom()
    elif argstr.startswith("-") and argstr[1:] in PLANNER_EFFORTS:
        set_planner_effort(argstr[1:])
    else:
        raise InvalidArgumentError(f"Unrecognized option {argstr}.")


class FourierTransform:
    """In place unnormalized transforms over the last axis of a buffer.

    Planning may overwrite the buffer, so it has to be filled after the
    transform is built.
    """

    def __init__(self, A: np.ndarray) -> None:
        """Plan the forward and backward transforms of A.

        Args:
            A (np.ndarray): Aligned complex buffer.
        """
        try:
            self._plan_fft = pyfftw.FFTW(
                A,
                A,
                direction="FFTW_FORWARD",
                flags=(pyfftw.config.PLANNER_EFFORT,),
                threads=pyfftw.config.NUM_THREADS,
                axes=(-1,),
            )
            self._plan_ifft = pyfftw.FFTW(
                A,
                A,
                direction="FFTW_BACKWARD",
                flags=(pyfftw.config.PLANNER_EFFORT,),
                threads=pyfftw.config.NUM_THREADS,
                axes=(-1,),
            )
        except (RuntimeError, ValueError) as err:
            raise TransformProviderError(
                f"Could not create FFTW plans for shape {A.shape}."
            ) from err

    def forward(self) -> None:
        """A = fft(A)"""
        self._plan_fft.execute()

    def inverse(self) -> None:
        """A = NT * ifft(A)"""
        self._plan_ifft.execute()


class Workspace:
    """Buffers and FFTW plans owned by a single propagation call.

    Use it as a context manager so that everything is released when the
    call returns or fails.
    """

    def __init__(
        self,
        NT: int,
        channels: int = 1,
        dtype: type = np.complex128,
        verbose: bool = False,
    ) -> None:
        """Allocate the buffers and build the plans.

        Args:
            NT (int): Number of samples per channel.
            channels (int, optional): Number of fields. Defaults to 1.
            dtype (type, optional): Complex dtype. Defaults to np.complex128.
            verbose (bool, optional): Print planning messages.
                Defaults to False.
        """
        ensure_wisdom()
        self.NT = NT
        shape = (channels, NT)
        # frequency domain field, kept from one step to the next
        self.ufft = pyfftw.zeros_aligned(
            shape, dtype=dtype, n=pyfftw.simd_alignment
        )
        self.uhalf = pyfftw.zeros_aligned(
            shape, dtype=dtype, n=pyfftw.simd_alignment
        )
        self.uv = pyfftw.zeros_aligned(
            shape, dtype=dtype, n=pyfftw.simd_alignment
        )
        self.u0 = np.zeros(shape, dtype=dtype)
        self.u1 = np.zeros(shape, dtype=dtype)
        if verbose:
            print(f"Creating FFTW plans (length = {NT}) ... ", end="")
        self.plan_ufft = FourierTransform(self.ufft)
        self.plan_uhalf = FourierTransform(self.uhalf)
        self.plan_uv = FourierTransform(self.uv)
        if verbose:
            print("done.")

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    def release(self) -> None:
        """Drop the plans and buffers."""
        self.plan_ufft = self.plan_uhalf = self.plan_uv = None
        self.ufft = self.uhalf = self.uv = self.u0 = self.u1 = None
