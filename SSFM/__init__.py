"""
SSFM.

A package for propagating optical pulses in fibers with the symmetric
Split-Step Fourier method, for a single polarization or for the two
polarizations of a birefringent fiber.
"""

__version__ = "1.0.0"
__author__ = "Tangui Aladjidi"
__license__ = "GPLv3"
__credits__ = "Laboratoire Kastler Brossel, Paris, France"
__email__ = "tangui.aladjidi@lkb.upmc.fr"


from . import fftw, linear, polarization, utils
from .callbacks import *
from .ssfm import SSFM, propagate_scalar
from .utils import (
    ConvergenceWarning,
    InvalidArgumentError,
    TransformProviderError,
    optical_cycle_time,
)
from .vssfm import VSSFM, propagate_vector
