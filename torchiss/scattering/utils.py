"""
Unit conversions and tensor helpers for the scattering model

Conversions work on Python floats, NumPy arrays and torch tensors alike,
since they are plain arithmetic.
"""

import math
from typing import Union

import numpy as np
import torch


# Physical constants (CGS)
C_CM_PER_S = 2.99792458e10  # speed of light (cm/s), exact
PC_CM = 3.0856775814913673e18  # parsec (cm)

# milliarcseconds to radians
MAS_TO_RAD = math.pi / (180.0 * 3600.0 * 1000.0)


def calc_theta_rad(theta_mas):
    """
    Convert an angle from milliarcseconds to radians.

    Args:
        theta_mas: Angle (mas)

    Returns:
        Angle (rad)

    Note:
        Uses the exact factor pi / (180 * 3600 * 1000). Structure-function
        amplitudes square this value, so it must not be rounded.
    """
    return theta_mas * MAS_TO_RAD


def nu2lambda_cm(nu_hz):
    """
    Convert frequency (Hz) to wavelength (cm).

    Examples:
        >>> lam = nu2lambda_cm(230e9)  # 1.3 mm
        >>> print(f"Wavelength: {lam:.4f} cm")
    """
    return C_CM_PER_S / nu_hz


def pc_to_cm(d_pc):
    """Convert a distance from parsec to cm."""
    return d_pc * PC_CM


def to_tensor(
    value: Union[float, int, np.ndarray, torch.Tensor],
    dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    """
    Convert a scalar, array or tensor to a floating tensor of the given dtype.

    Tensors keep their device and autograd graph.
    """
    if isinstance(value, torch.Tensor):
        return value.to(dtype=dtype)
    return torch.as_tensor(value, dtype=dtype)
