"""
Closed-form constants of the anisotropic thin-screen scattering model

Implements the parameter derivations of Psaltis et al. (2018) with the
conventions of Johnson et al. (2018). All functions take and return
Python floats: lengths in cm, angles in radians unless the name says
otherwise.

References:
    Psaltis, D., et al. 2018, arXiv:1805.01242
    Johnson, M. D., et al. 2018, ApJ, 865, 104
"""

import math
from typing import Callable

from scipy import integrate, special

from ..exceptions import NumericInstabilityError
from .anisotropy import AnisotropyState


# Converts a Gaussian FWHM into the matching structure-function scale
FWHM_FAC = math.sqrt(2.0 * math.log(2.0)) / math.pi

# Quadrature controls for the B coefficients
QUAD_LIMIT = 250
QUAD_EPSREL = 1e-10


def calc_A(theta_maj, theta_min):
    """Asymmetry of the scattered image, theta_maj / theta_min (>= 1)."""
    return theta_maj / theta_min


def calc_zeta0(A):
    """
    Map the asymmetry A onto zeta0 = (A^2 - 1) / (A^2 + 1).

    zeta0 is the ratio (theta_maj^2 - theta_min^2) / (theta_maj^2 + theta_min^2)
    and lies in (0, 1) for any anisotropic model with A > 1.
    """
    return (A**2 - 1) / (A**2 + 1)


def calc_M(D, R):
    """
    Magnification of the screen, D / R.

    Args:
        D: Observer-screen distance
        R: Source-screen distance (same unit as D)
    """
    return D / R


def calc_Amaj(rin, lambda0, M, theta_maj_rad):
    """
    Major-axis amplitude of the phase structure function at r << rin.

    Args:
        rin: Inner scale (cm)
        lambda0: Reference wavelength (cm)
        M: Magnification
        theta_maj_rad: Major-axis FWHM at lambda0 (rad)
    """
    return (rin * (1 + M) * theta_maj_rad / (FWHM_FAC * (lambda0 / (2 * math.pi)) * 2 * math.pi))**2


def calc_Amin(rin, lambda0, M, theta_min_rad):
    """Minor-axis counterpart of calc_Amaj."""
    return (rin * (1 + M) * theta_min_rad / (FWHM_FAC * (lambda0 / (2 * math.pi)) * 2 * math.pi))**2


def calc_Qbar(alpha, rin, lambda0, M, theta_maj_rad, theta_min_rad):
    """
    Normalisation of the phase power spectrum.

    Qbar = 2 / Gamma((2 - alpha) / 2)
           * (rin^2 (1 + M) / (FWHM_FAC (lambda0 / 2 pi)^2))^2
           * (theta_maj^2 + theta_min^2)
    """
    return (
        2.0 / special.gamma((2.0 - alpha) / 2.0)
        * (rin**2 * (1 + M) / (FWHM_FAC * (lambda0 / (2 * math.pi))**2))**2
        * (theta_maj_rad**2 + theta_min_rad**2)
    )


def calc_C(alpha, rin, lambda0, Qbar):
    """Amplitude of the power spectrum at the reference wavelength."""
    return (lambda0 / (2 * math.pi))**2 * Qbar * special.gamma(1.0 - alpha / 2.0) / (8 * math.pi**2 * rin**2)


def calc_phi0(phi_pa_deg):
    """
    Convert a position angle to the kernel's angle convention.

    The input is measured east of north (from the Dec axis, counter-clockwise
    on the sky); the output is measured from the RA axis, in radians.
    """
    return (90.0 - phi_pa_deg) * math.pi / 180.0


def calc_B_prefac(alpha, C):
    """Common prefactor of Bmaj and Bmin."""
    return C * 2.0**(2.0 - alpha) * math.sqrt(math.pi) / (alpha * special.gamma((alpha + 1.0) / 2.0))


def _directional_integral(alpha, state: AnisotropyState, trig: Callable[[float], float]) -> float:
    """Integrate |trig(phi0 - phi)|^alpha P(phi) over [0, 2 pi)."""
    phi0 = state.phi0

    def integrand(phi):
        return abs(trig(phi0 - phi))**alpha * state.weight(phi)

    # Kernel edges plus the zeros of sin/cos, where the integrand has a kink
    points = set(state.breakpoints())
    for n in range(-2, 5):
        point = phi0 + n * math.pi / 2
        if 0.0 < point < 2 * math.pi:
            points.add(point)

    value, _ = integrate.quad(
        integrand, 0.0, 2 * math.pi, points=sorted(points),
        limit=QUAD_LIMIT, epsabs=0.0, epsrel=QUAD_EPSREL
    )
    if not math.isfinite(value):
        raise NumericInstabilityError(f"Directional integral is not finite: {value!r}")
    return value


def calc_Bmaj(alpha, state: AnisotropyState, B_prefac):
    """
    Major-axis coefficient of the phase structure function at r >> rin.

    Args:
        alpha: Power-law index
        state: Solved anisotropy constants (kzeta, P(phi) prefactor, phi0)
        B_prefac: Output of calc_B_prefac

    Returns:
        B_prefac * integral of |cos(phi0 - phi)|^alpha P(phi) over [0, 2 pi)
    """
    return B_prefac * _directional_integral(alpha, state, math.cos)


def calc_Bmin(alpha, state: AnisotropyState, B_prefac):
    """Minor-axis coefficient; as calc_Bmaj with |sin(phi0 - phi)|^alpha."""
    return B_prefac * _directional_integral(alpha, state, math.sin)
