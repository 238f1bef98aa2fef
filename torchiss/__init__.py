"""
TorchISS: PyTorch implementation of interstellar scattering kernels

Ensemble-averaged, visibility-domain scattering kernels for VLBI sky
models, based on the anisotropic thin-screen model of Psaltis et al. (2018),
featuring batched operations and differentiability.
"""

__version__ = "0.1.0"

from . import scattering
from .exceptions import ConfigurationError, RootFindError, NumericInstabilityError
from .scattering import (
    ScatteringModel,
    PeriodicBoxCarScatteringModel,
    ApproximatedScatteringKernel,
    ScatteringKernel,
    VisibilityQuery,
)
from .api import (
    get_scattering_model,
    scattering_kernel,
    kernel_visibility,
    angular_scale,
    clear_cache
)

__all__ = [
    "scattering",
    "__version__",
    "ConfigurationError",
    "RootFindError",
    "NumericInstabilityError",
    "ScatteringModel",
    "PeriodicBoxCarScatteringModel",
    "ApproximatedScatteringKernel",
    "ScatteringKernel",
    "VisibilityQuery",
    "get_scattering_model",
    "scattering_kernel",
    "kernel_visibility",
    "angular_scale",
    "clear_cache",
]
