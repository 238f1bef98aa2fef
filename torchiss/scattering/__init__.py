"""
Anisotropic thin-screen scattering model and kernels in PyTorch
"""

from .utils import calc_theta_rad, nu2lambda_cm, pc_to_cm, to_tensor
from .anisotropy import (
    AnisotropyKernelFamily, PeriodicBoxCar, AnisotropyState, FAMILIES,
    find_kzeta_exact, p_phi
)
from .derivations import (
    calc_A, calc_zeta0, calc_M, calc_Amaj, calc_Amin, calc_Qbar, calc_C,
    calc_phi0, calc_B_prefac, calc_Bmaj, calc_Bmin
)
from .model import ScatteringModel, PeriodicBoxCarScatteringModel, JOHNSON2018_PARAMETERS
from .kernel import VisibilityQuery, ApproximatedScatteringKernel, ScatteringKernel

__all__ = [
    'calc_theta_rad',
    'nu2lambda_cm',
    'pc_to_cm',
    'to_tensor',
    'AnisotropyKernelFamily',
    'PeriodicBoxCar',
    'AnisotropyState',
    'FAMILIES',
    'find_kzeta_exact',
    'p_phi',
    'calc_A',
    'calc_zeta0',
    'calc_M',
    'calc_Amaj',
    'calc_Amin',
    'calc_Qbar',
    'calc_C',
    'calc_phi0',
    'calc_B_prefac',
    'calc_Bmaj',
    'calc_Bmin',
    'ScatteringModel',
    'PeriodicBoxCarScatteringModel',
    'JOHNSON2018_PARAMETERS',
    'VisibilityQuery',
    'ApproximatedScatteringKernel',
    'ScatteringKernel',
]
