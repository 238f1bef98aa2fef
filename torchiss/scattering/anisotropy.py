"""
Anisotropy kernels of the scattering screen

The power spectrum of phase fluctuations is Q(q) ~ q^{-(alpha+2)} P(phi_q),
where P(phi) describes how turbulence is distributed in position angle on
the screen. Each kernel family has a shape parameter kzeta fixed by the
observed asymmetry of the scatter-broadened image through zeta0.

Reference:
    Psaltis, D., Johnson, M., Narayan, R., et al. 2018, arXiv:1805.01242
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import torch
from scipy import optimize

from ..exceptions import ConfigurationError, RootFindError


# Root-finding controls for kzeta
KZETA_RTOL = 1e-12
KZETA_XTOL = 1e-12
KZETA_MAXITER = 100
KZETA_MAX_BRACKET_EXPANSIONS = 64


def p_phi(phi, phi0, kzeta, pphi0):
    """
    Periodic boxcar anisotropy kernel.

    P(phi) is constant (pphi0) except inside the notch

        pi / (2 (1 + kzeta)) < (phi - phi0) mod pi < pi (1 - 1 / (2 (1 + kzeta)))

    where it vanishes.

    Args:
        phi: Position angle on the screen (rad); float, ndarray or tensor
        phi0: Position angle of the major axis, RA-referenced (rad)
        kzeta: Shape parameter of the boxcar
        pphi0: Kernel value outside the notch, (1 + kzeta) / (2 pi)

    Returns:
        P(phi), same type as phi
    """
    dphi = (phi - phi0) % math.pi
    in_notch = (math.pi / (2 * (1 + kzeta)) < dphi) & (dphi < math.pi * (1 - 0.5 / (1 + kzeta)))

    if isinstance(in_notch, torch.Tensor):
        return torch.where(in_notch, torch.zeros_like(dphi), torch.full_like(dphi, pphi0))
    if isinstance(in_notch, np.ndarray):
        return np.where(in_notch, 0.0, pphi0)
    return 0.0 if in_notch else pphi0


def _check_zeta0(zeta0: float) -> None:
    if not math.isfinite(zeta0) or not 0.0 < zeta0 < 1.0:
        raise ConfigurationError(
            f"zeta0 must lie strictly inside (0, 1), got {zeta0!r}; "
            "zeta0 <= 0 means an isotropic (or axis-swapped) model"
        )


class AnisotropyKernelFamily(ABC):
    """
    A family of anisotropy kernels P(phi; phi0, kzeta).

    Subclasses supply the equation tying kzeta to zeta0, the kernel itself
    and its normalisation, so model construction and kernel evaluation do
    not depend on the concrete shape.
    """

    name = "abstract"

    @abstractmethod
    def find_kzeta(self, zeta0: float) -> float:
        """Solve the family's defining equation for kzeta."""

    @abstractmethod
    def prefactor(self, kzeta: float) -> float:
        """Normalisation making P(phi) integrate to one over [0, 2 pi)."""

    @abstractmethod
    def weight(self, phi, phi0, kzeta, pphi0):
        """Evaluate P(phi)."""

    def breakpoints(self, phi0: float, kzeta: float) -> Tuple[float, ...]:
        """Angles in (0, 2 pi) where P(phi) is discontinuous."""
        return ()


@dataclass(frozen=True)
class PeriodicBoxCar(AnisotropyKernelFamily):
    """
    Periodic boxcar kernel of Psaltis et al. (2018).

    kzeta follows from

        sin(pi / (1 + kzeta)) / (pi / (1 + kzeta)) = zeta0

    whose left-hand side rises monotonically from 0 at kzeta = 0 to 1 as
    kzeta -> infinity, so every zeta0 in (0, 1) has exactly one positive root.
    """

    name = "boxcar"

    @staticmethod
    def residual(kzeta: float, zeta0: float) -> float:
        x = math.pi / (1.0 + kzeta)
        return math.sin(x) / x - zeta0

    def find_kzeta(self, zeta0: float) -> float:
        """
        Find kzeta with Brent's method.

        Raises:
            ConfigurationError: zeta0 outside (0, 1)
            RootFindError: no sign change in the bracket, or no convergence
        """
        _check_zeta0(zeta0)

        lower = 0.0
        upper = 1.0
        f_lower = self.residual(lower, zeta0)
        f_upper = self.residual(upper, zeta0)

        # Grow the bracket until the residual changes sign
        expansions = 0
        while f_lower * f_upper > 0:
            if expansions >= KZETA_MAX_BRACKET_EXPANSIONS:
                raise RootFindError(
                    f"No sign change for boxcar kzeta in [0, {upper:.3e}] (zeta0={zeta0!r})"
                )
            lower, f_lower = upper, f_upper
            upper *= 2.0
            f_upper = self.residual(upper, zeta0)
            expansions += 1

        try:
            kzeta, result = optimize.brentq(
                self.residual, lower, upper, args=(zeta0,),
                xtol=KZETA_XTOL, rtol=KZETA_RTOL, maxiter=KZETA_MAXITER,
                full_output=True, disp=False
            )
        except (ValueError, RuntimeError) as exc:
            raise RootFindError(f"Brent's method failed for zeta0={zeta0!r}: {exc}") from exc

        if not result.converged:
            raise RootFindError(
                f"kzeta did not converge in {result.iterations} iterations "
                f"(zeta0={zeta0!r}, flag={result.flag})"
            )
        if not math.isfinite(kzeta) or kzeta <= 0:
            raise RootFindError(f"Invalid kzeta={kzeta!r} for zeta0={zeta0!r}")

        return float(kzeta)

    def prefactor(self, kzeta: float) -> float:
        return (1 + kzeta) / (2 * math.pi)

    def weight(self, phi, phi0, kzeta, pphi0):
        return p_phi(phi, phi0, kzeta, pphi0)

    def breakpoints(self, phi0: float, kzeta: float) -> Tuple[float, ...]:
        half_width = math.pi / (2 * (1 + kzeta))
        edges = []
        for n in range(-2, 3):
            for offset in (half_width, math.pi - half_width):
                edge = phi0 + offset + n * math.pi
                if 0.0 < edge < 2 * math.pi:
                    edges.append(edge)
        return tuple(sorted(edges))


# Registry of families by name, used by the high-level API
FAMILIES = {
    PeriodicBoxCar.name: PeriodicBoxCar,
}


def find_kzeta_exact(family: AnisotropyKernelFamily, zeta0: float) -> float:
    """
    Solve for the anisotropy shape parameter kzeta of a kernel family.

    Args:
        family: Kernel family providing the defining equation
        zeta0: Target asymmetry, (A^2 - 1) / (A^2 + 1)

    Returns:
        kzeta > 0

    Examples:
        >>> kzeta = find_kzeta_exact(PeriodicBoxCar(), 0.5)
        >>> print(f"kzeta: {kzeta:.4f}")
    """
    return family.find_kzeta(zeta0)


@dataclass(frozen=True)
class AnisotropyState:
    """Solved anisotropy constants of one model."""
    family: AnisotropyKernelFamily
    zeta0: float
    kzeta: float
    pphi0: float
    phi0: float

    @classmethod
    def solve(cls, family: AnisotropyKernelFamily, zeta0: float, phi0: float) -> "AnisotropyState":
        kzeta = find_kzeta_exact(family, zeta0)
        return cls(family=family, zeta0=zeta0, kzeta=kzeta, pphi0=family.prefactor(kzeta), phi0=phi0)

    def weight(self, phi):
        """P(phi) with the solved constants."""
        return self.family.weight(phi, self.phi0, self.kzeta, self.pphi0)

    def breakpoints(self) -> Tuple[float, ...]:
        return self.family.breakpoints(self.phi0, self.kzeta)
