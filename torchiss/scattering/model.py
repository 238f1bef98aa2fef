"""
Anisotropic thin-screen scattering model

A ScatteringModel bundles the physical parameters of a scattering screen
with every constant derived from them. Constants are computed once, at
construction; the object is immutable afterwards.

The default parameters are the best fit to Sgr A* of Johnson et al. (2018).

References:
    Psaltis, D., et al. 2018, arXiv:1805.01242
    Johnson, M. D., et al. 2018, ApJ, 865, 104
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Union

import torch

from ..exceptions import ConfigurationError, NumericInstabilityError
from .anisotropy import AnisotropyKernelFamily, AnisotropyState, PeriodicBoxCar
from .derivations import (
    calc_A, calc_zeta0, calc_M, calc_Amaj, calc_Amin, calc_Qbar, calc_C,
    calc_phi0, calc_B_prefac, calc_Bmaj, calc_Bmin
)
from .utils import calc_theta_rad, pc_to_cm, to_tensor


# Best-fit parameters for Sgr A* (Johnson et al. 2018)
JOHNSON2018_PARAMETERS = {
    'alpha': 1.38,
    'rin_cm': 800e5,
    'theta_maj_mas': 1.380,
    'theta_min_mas': 0.703,
    'phi_pa_deg': 81.9,
    'lambda0_cm': 1.0,
    'D_pc': 2.82,
    'R_pc': 5.53,
}

_DERIVED = ('M', 'zeta0', 'A', 'kzeta', 'Pphi0', 'Bmaj', 'Bmin', 'Qbar', 'C', 'Amaj', 'Amin', 'phi0')

TensorLike = Union[float, torch.Tensor]


@dataclass(frozen=True)
class ScatteringModel:
    """
    Anisotropic scattering model based on a thin-screen approximation.

    Args:
        alpha: Power-law index of the phase fluctuations (Kolmogorov is 5/3)
        rin_cm: Inner scale of the scattering screen (cm)
        theta_maj_mas: Major-axis FWHM of the angular broadening at lambda0 (mas)
        theta_min_mas: Minor-axis FWHM of the angular broadening at lambda0 (mas)
        phi_pa_deg: Position angle of the major axis, east of north (deg)
        lambda0_cm: Reference wavelength (cm)
        D_pc: Observer-screen distance (pc); only D_pc / R_pc enters the kernel
        R_pc: Source-screen distance (pc)
        family: Anisotropy kernel family (periodic boxcar by default)
        dtype: Floating dtype of tensors returned by the structure-function helpers

    Raises:
        ConfigurationError: An input is outside its physical domain
        RootFindError: kzeta could not be solved for
        NumericInstabilityError: A derived constant is not finite

    Examples:
        >>> sm = ScatteringModel()
        >>> print(f"kzeta = {sm.kzeta:.4f}, Bmaj = {sm.Bmaj:.3f}")
        >>> sm_kolmogorov = ScatteringModel(alpha=5/3)
    """
    alpha: float = JOHNSON2018_PARAMETERS['alpha']
    rin_cm: float = JOHNSON2018_PARAMETERS['rin_cm']
    theta_maj_mas: float = JOHNSON2018_PARAMETERS['theta_maj_mas']
    theta_min_mas: float = JOHNSON2018_PARAMETERS['theta_min_mas']
    phi_pa_deg: float = JOHNSON2018_PARAMETERS['phi_pa_deg']
    lambda0_cm: float = JOHNSON2018_PARAMETERS['lambda0_cm']
    D_pc: float = JOHNSON2018_PARAMETERS['D_pc']
    R_pc: float = JOHNSON2018_PARAMETERS['R_pc']
    family: AnisotropyKernelFamily = field(default=PeriodicBoxCar(), repr=False)
    dtype: torch.dtype = field(default=torch.float64, repr=False)

    # Precomputed constants
    M: float = field(init=False)
    zeta0: float = field(init=False)
    A: float = field(init=False)
    kzeta: float = field(init=False)
    Pphi0: float = field(init=False)
    Bmaj: float = field(init=False)
    Bmin: float = field(init=False)
    Qbar: float = field(init=False)
    C: float = field(init=False)
    Amaj: float = field(init=False)
    Amin: float = field(init=False)
    phi0: float = field(init=False)

    def __post_init__(self):
        self._validate()
        try:
            derived = self._derive()
        except (OverflowError, ZeroDivisionError) as exc:
            raise NumericInstabilityError(f"Derived constants are not representable: {exc}") from exc

        for name in _DERIVED:
            value = float(derived[name])
            if not math.isfinite(value):
                raise NumericInstabilityError(f"Derived constant {name} is not finite: {value!r}")
            object.__setattr__(self, name, value)

    def _derive(self):
        # Asymmetry and magnification
        A = calc_A(self.theta_maj_mas, self.theta_min_mas)
        zeta0 = calc_zeta0(A)
        M = calc_M(self.D_pc, self.R_pc)

        # Approximate phase structure function at r << rin
        theta_maj_rad = calc_theta_rad(self.theta_maj_mas)
        theta_min_rad = calc_theta_rad(self.theta_min_mas)
        Amaj = calc_Amaj(self.rin_cm, self.lambda0_cm, M, theta_maj_rad)
        Amin = calc_Amin(self.rin_cm, self.lambda0_cm, M, theta_min_rad)

        # Power spectrum scaling
        Qbar = calc_Qbar(self.alpha, self.rin_cm, self.lambda0_cm, M, theta_maj_rad, theta_min_rad)
        C = calc_C(self.alpha, self.rin_cm, self.lambda0_cm, Qbar)

        phi0 = calc_phi0(self.phi_pa_deg)

        # kzeta and P(phi) depend on the kernel family
        state = AnisotropyState.solve(self.family, zeta0, phi0)

        # Approximate phase structure function at r >> rin
        B_prefac = calc_B_prefac(self.alpha, C)
        Bmaj = calc_Bmaj(self.alpha, state, B_prefac)
        Bmin = calc_Bmin(self.alpha, state, B_prefac)

        return {
            'M': M, 'zeta0': zeta0, 'A': A, 'kzeta': state.kzeta, 'Pphi0': state.pphi0,
            'Bmaj': Bmaj, 'Bmin': Bmin, 'Qbar': Qbar, 'C': C,
            'Amaj': Amaj, 'Amin': Amin, 'phi0': phi0,
        }

    def _validate(self):
        positive = {
            'rin_cm': self.rin_cm,
            'theta_maj_mas': self.theta_maj_mas,
            'theta_min_mas': self.theta_min_mas,
            'lambda0_cm': self.lambda0_cm,
            'D_pc': self.D_pc,
            'R_pc': self.R_pc,
        }
        for name, value in positive.items():
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be positive and finite, got {value!r}")
        if not math.isfinite(self.alpha) or not 0.0 < self.alpha < 2.0:
            raise ConfigurationError(f"alpha must lie in (0, 2), got {self.alpha!r}")
        if not math.isfinite(self.phi_pa_deg):
            raise ConfigurationError(f"phi_pa_deg must be finite, got {self.phi_pa_deg!r}")
        if self.theta_maj_mas <= self.theta_min_mas:
            raise ConfigurationError(
                f"theta_maj_mas ({self.theta_maj_mas!r}) must exceed theta_min_mas "
                f"({self.theta_min_mas!r}) for an anisotropic model"
            )
        if not isinstance(self.family, AnisotropyKernelFamily):
            raise ConfigurationError(f"Unsupported anisotropy family: {self.family!r}")

    @property
    def anisotropy(self) -> AnisotropyState:
        """Solved anisotropy constants as an AnisotropyState."""
        return AnisotropyState(family=self.family, zeta0=self.zeta0, kzeta=self.kzeta,
                               pphi0=self.Pphi0, phi0=self.phi0)

    def p_phi(self, phi):
        """Anisotropy kernel P(phi) with this model's constants."""
        return self.family.weight(phi, self.phi0, self.kzeta, self.Pphi0)

    def _structure_function(self, B, A, r, wavelength_cm, dtype):
        alpha = self.alpha
        dtype = dtype or self.dtype
        r = to_tensor(r, dtype)
        lam = to_tensor(wavelength_cm, dtype)
        ratio = 2.0 * A / (alpha * B)
        return (
            (lam / self.lambda0_cm)**2 * B * ratio**(-alpha / (2.0 - alpha))
            * ((1.0 + ratio**(2.0 / (2.0 - alpha)) * (r / self.rin_cm)**2)**(alpha / 2.0) - 1.0)
        )

    def Dmaj(self, r: TensorLike, wavelength_cm: TensorLike,
             dtype: Optional[torch.dtype] = None) -> torch.Tensor:
        """
        Phase structure function along the major axis.

        Args:
            r: Separation on the screen (cm)
            wavelength_cm: Observing wavelength (cm)

        Note:
            Interpolates between Amaj (r/rin)^2 for r << rin and
            Bmaj (r/rin)^alpha for r >> rin, scaled by (lambda/lambda0)^2.
        """
        return self._structure_function(self.Bmaj, self.Amaj, r, wavelength_cm, dtype)

    def Dmin(self, r: TensorLike, wavelength_cm: TensorLike,
             dtype: Optional[torch.dtype] = None) -> torch.Tensor:
        """Phase structure function along the minor axis."""
        return self._structure_function(self.Bmin, self.Amin, r, wavelength_cm, dtype)

    def dphi_approx(self, x: TensorLike, y: TensorLike, wavelength_cm: TensorLike,
                    dtype: Optional[torch.dtype] = None) -> torch.Tensor:
        """
        Approximate phase structure function at screen separation (x, y).

        Args:
            x: Separation along RA (cm)
            y: Separation along Dec (cm)
            wavelength_cm: Observing wavelength (cm)
            dtype: Tensor dtype, defaults to the model dtype
        """
        dtype = dtype or self.dtype
        x = to_tensor(x, dtype)
        y = to_tensor(y, dtype)
        r = torch.sqrt(x**2 + y**2)
        phi = torch.atan2(y, x)

        dmaj = self.Dmaj(r, wavelength_cm, dtype)
        dmin = self.Dmin(r, wavelength_cm, dtype)
        return (dmaj + dmin) / 2.0 + (dmaj - dmin) / 2.0 * torch.cos(2.0 * (phi - self.phi0))

    def power_spectrum(self, qx: TensorLike, qy: TensorLike) -> torch.Tensor:
        """
        Power spectrum Q(qx, qy) of the phase fluctuations.

        Args:
            qx, qy: Wavenumber components (1/cm)

        Note:
            Independent of the observing wavelength. A tiny offset keeps q
            away from zero.
        """
        qx = to_tensor(qx, self.dtype)
        qy = to_tensor(qy, self.dtype)
        q = torch.sqrt(qx**2 + qy**2) + 1e-12 / self.rin_cm
        phi_q = torch.atan2(qy, qx)
        qr = q * self.rin_cm
        return self.Qbar * qr**(-(self.alpha + 2.0)) * torch.exp(-qr**2) * self.p_phi(phi_q)

    def fresnel_scale(self, wavelength_cm: TensorLike) -> torch.Tensor:
        """
        Fresnel scale of the screen (cm) at the given wavelength (cm).

        Note:
            Unlike the kernel, which depends on D and R only through M, this
            uses the absolute distances. The default D_pc and R_pc carry the
            numbers Johnson et al. (2018) quote in kpc, so pass D_pc=2820,
            R_pc=5530 for the physical Sgr A* screen.
        """
        D = pc_to_cm(self.D_pc)
        R = pc_to_cm(self.R_pc)
        lam = to_tensor(wavelength_cm, self.dtype)
        return torch.sqrt(D * R / (D + R) * lam / (2.0 * math.pi))


@dataclass(frozen=True)
class PeriodicBoxCarScatteringModel(ScatteringModel):
    """
    Scattering model with the periodic boxcar anisotropy of Psaltis et al. (2018).

    Same keywords as ScatteringModel, with the family fixed to PeriodicBoxCar.
    """
    family: AnisotropyKernelFamily = field(default=PeriodicBoxCar(), init=False, repr=False)
