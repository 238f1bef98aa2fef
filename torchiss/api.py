"""
High-level API for TorchISS

Convenience functions that build (and cache) scattering models from
keyword parameters and evaluate the approximate scattering kernel.
Inputs may be plain numbers in the documented units or astropy quantities.

Example:
    >>> import torchiss
    >>> # Scattering kernel towards Sgr A* on a 3 Glambda baseline at 230 GHz
    >>> vis = torchiss.kernel_visibility(3e9, 0.0, 230e9)
    >>> print(f"Kernel amplitude: {abs(vis):.3f}")
    >>>
    >>> # Field of view needed at 86 GHz
    >>> fov = torchiss.angular_scale(86e9)
"""

import warnings
from typing import Any, Dict, Union

import numpy as np
import torch

from .scattering import (
    FAMILIES,
    JOHNSON2018_PARAMETERS,
    ApproximatedScatteringKernel,
    ScatteringModel,
)

# Try to import astropy for units support
try:
    from astropy.units import Quantity
    import astropy.units as units
    HAS_ASTROPY = True
except ImportError:
    HAS_ASTROPY = False


# Unit expected by ScatteringModel for each dimensional keyword
PARAMETER_UNITS = {
    'rin_cm': 'cm',
    'theta_maj_mas': 'mas',
    'theta_min_mas': 'mas',
    'phi_pa_deg': 'deg',
    'lambda0_cm': 'cm',
    'D_pc': 'pc',
    'R_pc': 'pc',
}

# Below this frequency the screen parameters are far outside their calibration
MIN_VALID_FREQUENCY_HZ = 1e9


# Cached models, keyed by family name and parameters
_model_cache: Dict[Any, ScatteringModel] = {}


def _unit_convert(q, unit_str):
    """Convert astropy.Quantity to float with given unit.

    If not an astropy quantity, returns value unchanged.
    """
    if HAS_ASTROPY and isinstance(q, Quantity):
        q = q.to(unit_str).value
    return q


def _frequency_array(nu) -> np.ndarray:
    if isinstance(nu, torch.Tensor):
        return nu.detach().cpu().numpy()
    return np.asarray(nu, dtype=float)


def get_scattering_model(model: str = 'boxcar', **params) -> ScatteringModel:
    """
    Get or create a scattering model.

    Args:
        model: Anisotropy kernel family, only 'boxcar' supported
        **params: ScatteringModel keywords (alpha, rin_cm, theta_maj_mas,
            theta_min_mas, phi_pa_deg, lambda0_cm, D_pc, R_pc); astropy
            quantities are converted to the unit in the keyword name.
            Missing keywords take the Johnson et al. (2018) defaults.

    Returns:
        Cached ScatteringModel

    Examples:
        >>> sm = get_scattering_model()
        >>> sm_far = get_scattering_model(D_pc=5.0)
    """
    family = FAMILIES.get(model.lower())
    if family is None:
        raise RuntimeError(f"Unknown scattering model '{model}'; supported: {sorted(FAMILIES)}")

    unknown = set(params) - set(JOHNSON2018_PARAMETERS)
    if unknown:
        raise TypeError(f"Unexpected scattering model parameters: {sorted(unknown)}")

    converted = {}
    for name, value in params.items():
        if name in PARAMETER_UNITS:
            value = _unit_convert(value, PARAMETER_UNITS[name])
        converted[name] = float(value)

    key = (family.name, tuple(sorted(converted.items())))
    if key not in _model_cache:
        _model_cache[key] = ScatteringModel(family=family(), **converted)
    return _model_cache[key]


def scattering_kernel(
    nu_ref: Union[float, Any],
    model: str = 'boxcar',
    dtype: torch.dtype = torch.float64,
    **params
) -> ApproximatedScatteringKernel:
    """
    Build an approximate scattering kernel on a cached model.

    Args:
        nu_ref: Reference frequency (Hz) or astropy Quantity
        model: Anisotropy kernel family, only 'boxcar' supported
        dtype: Floating dtype of the kernel
        **params: ScatteringModel keywords, see get_scattering_model

    Returns:
        ApproximatedScatteringKernel
    """
    nu_ref = _unit_convert(nu_ref, 'Hz')
    return ApproximatedScatteringKernel(get_scattering_model(model, **params), float(nu_ref), dtype)


def kernel_visibility(
    u: Union[float, np.ndarray, torch.Tensor],
    v: Union[float, np.ndarray, torch.Tensor],
    nu: Union[float, np.ndarray, torch.Tensor],
    time: Union[float, np.ndarray, torch.Tensor] = 0.0,
    model: str = 'boxcar',
    dtype: torch.dtype = torch.float64,
    **params
) -> Union[complex, torch.Tensor]:
    """
    Evaluate the scattering kernel at baseline(s) (u, v).

    Args:
        u: Baseline u coordinate (wavelengths)
        v: Baseline v coordinate (wavelengths)
        nu: Observing frequency (Hz) or astropy Quantity; scalar or per sample
        time: Observing time (unused by the stationary kernel)
        model: Anisotropy kernel family, only 'boxcar' supported
        dtype: Floating dtype of the computation
        **params: ScatteringModel keywords, see get_scattering_model

    Returns:
        Python complex for a scalar result, otherwise a complex tensor

    Examples:
        >>> vis = kernel_visibility(1e9, 0.0, 230e9)
        >>> vis = kernel_visibility(np.array([1e9, 2e9]), np.zeros(2), 86e9, alpha=5/3)
    """
    nu = _unit_convert(nu, 'Hz')
    nu_values = _frequency_array(nu)
    if np.any(nu_values <= 0):
        raise ValueError("Observing frequencies must be positive")
    if np.any(nu_values < MIN_VALID_FREQUENCY_HZ):
        warnings.warn(
            f"Frequency below {MIN_VALID_FREQUENCY_HZ:.0e} Hz; the scattering "
            "model is extrapolated far beyond its reference wavelength"
        )

    # Reference frequency: the lowest requested frequency
    kernel = scattering_kernel(float(nu_values.min()), model, dtype, **params)
    result = kernel.evaluate(u, v, time, nu)

    if result.dim() == 0:
        return complex(result.item())
    return result


def angular_scale(
    nu: Union[float, Any],
    model: str = 'boxcar',
    **params
):
    """
    Angular radius beyond which the scattered image is negligible.

    Args:
        nu: Observing frequency (Hz) or astropy Quantity
        model: Anisotropy kernel family, only 'boxcar' supported
        **params: ScatteringModel keywords, see get_scattering_model

    Returns:
        Radius (astropy Quantity in rad if astropy available, else float in rad)
    """
    scale = scattering_kernel(nu, model, **params).angular_scale()
    if HAS_ASTROPY:
        return scale * units.rad
    return scale


def clear_cache():
    """
    Clear the cached ScatteringModel instances.

    Example:
        >>> import torchiss
        >>> torchiss.clear_cache()
    """
    _model_cache.clear()
