"""
Visibility-domain scattering kernels

The ensemble-averaged effect of the scattering screen on a visibility is a
real multiplicative factor, exp(-D_phi / 2), with the phase structure
function D_phi evaluated at the baseline projected onto the screen. A
kernel wraps a ScatteringModel with a reference frequency and evaluates
this factor for (batches of) visibility samples.

Reference:
    Psaltis, D., et al. 2018, arXiv:1805.01242 (fast approximate formula)
"""

import math
from dataclasses import dataclass, field
from typing import NamedTuple, Union

import numpy as np
import torch

from ..exceptions import ConfigurationError, NumericInstabilityError
from .model import ScatteringModel
from .utils import calc_theta_rad, nu2lambda_cm, to_tensor


ArrayLike = Union[float, np.ndarray, torch.Tensor]


class VisibilityQuery(NamedTuple):
    """
    One (or a batch of) visibility sample(s) requested by the sky model.

    U, V are baseline coordinates in wavelengths, Ti the observing time and
    Fr the frequency in Hz, where 0 means "use the kernel's reference frequency".
    """
    U: ArrayLike
    V: ArrayLike
    Ti: ArrayLike = 0.0
    Fr: ArrayLike = 0.0


@dataclass(frozen=True)
class ApproximatedScatteringKernel:
    """
    Scattering kernel using the fast approximation of Psaltis et al. (2018).

    Args:
        model: Scattering model supplying the precomputed constants
        nu_ref: Reference frequency (Hz); used when a sample has frequency 0
            and for the angular extent. Pick the lowest frequency of the sky model.
        dtype: Floating dtype of the computation; results are returned in the
            matching complex dtype (float64 -> complex128)

    Examples:
        >>> sm = ScatteringModel()
        >>> skm = ApproximatedScatteringKernel(sm, 230e9)
        >>> vis = skm.evaluate(torch.tensor([1e9, 3e9]), torch.tensor([0.0, -2e9]))
        >>> print(vis.abs())
    """
    model: ScatteringModel
    nu_ref: float
    dtype: torch.dtype = field(default=torch.float64)

    def __post_init__(self):
        if not isinstance(self.model, ScatteringModel):
            raise TypeError(f"model must be a ScatteringModel, got {type(self.model).__name__}")
        nu_ref = float(self.nu_ref)
        if not math.isfinite(nu_ref) or nu_ref <= 0:
            raise ConfigurationError(f"nu_ref must be positive and finite, got {self.nu_ref!r}")
        if not (isinstance(self.dtype, torch.dtype) and self.dtype.is_floating_point):
            raise ConfigurationError(f"dtype must be a floating torch dtype, got {self.dtype!r}")
        object.__setattr__(self, 'nu_ref', nu_ref)

    def angular_scale(self) -> float:
        """
        Angular radius (rad) beyond which the scattered image is negligible.

        Five times the major-axis FWHM, scaled as lambda^2 from the model's
        reference wavelength to the kernel's reference frequency.
        """
        sm = self.model
        return 5.0 * calc_theta_rad(sm.theta_maj_mas) * (nu2lambda_cm(self.nu_ref) / sm.lambda0_cm)**2

    def visibility_point_approx(self, wavelength_cm: ArrayLike, u: ArrayLike, v: ArrayLike) -> torch.Tensor:
        """
        Real kernel value exp(-D_phi / 2) at an explicit wavelength.

        Args:
            wavelength_cm: Observing wavelength (cm)
            u, v: Baseline coordinates (wavelengths)

        Returns:
            Real tensor of self.dtype, broadcast over the inputs
        """
        sm = self.model
        lam = to_tensor(wavelength_cm, self.dtype)
        u = to_tensor(u, self.dtype)
        v = to_tensor(v, self.dtype)

        # Baseline projected onto the screen (cm)
        x = u * lam / (1.0 + sm.M)
        y = v * lam / (1.0 + sm.M)

        return torch.exp(-0.5 * sm.dphi_approx(x, y, lam, dtype=self.dtype))

    def evaluate(
        self,
        u: ArrayLike,
        v: ArrayLike,
        time: ArrayLike = 0.0,
        frequency: ArrayLike = 0.0
    ) -> torch.Tensor:
        """
        Multiplicative scattering factor for visibility samples.

        Args:
            u, v: Baseline coordinates (wavelengths)
            time: Observing time; the approximation is stationary, so it is unused
            frequency: Observing frequency (Hz); 0 selects nu_ref

        Returns:
            Complex tensor (imaginary part exactly zero), broadcast over the inputs

        Raises:
            ConfigurationError: A frequency is negative
            NumericInstabilityError: The kernel value is not finite
        """
        fr = to_tensor(frequency, self.dtype)
        if bool((fr < 0).any()):
            raise ConfigurationError("Observing frequencies must be non-negative")
        nu = torch.where(fr == 0, torch.full_like(fr, self.nu_ref), fr)

        re = self.visibility_point_approx(nu2lambda_cm(nu), u, v)
        if not bool(torch.isfinite(re).all()):
            raise NumericInstabilityError("Scattering kernel produced non-finite values")

        return torch.complex(re, torch.zeros_like(re))

    def visibility_point(self, p) -> torch.Tensor:
        """
        Evaluate the kernel for a grouped query record.

        Args:
            p: VisibilityQuery, or any object with U, V, Ti and Fr attributes
        """
        return self.evaluate(p.U, p.V, p.Ti, p.Fr)


# The approximated kernel is the default
ScatteringKernel = ApproximatedScatteringKernel
