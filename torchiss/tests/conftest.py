"""
Pytest configuration and fixtures for torchiss tests
"""

import pytest
import torch

from torchiss.scattering import ScatteringModel, ApproximatedScatteringKernel


# Derived constants for the Johnson et al. (2018) defaults, from a reference run
JOHNSON2018_CONSTANTS = {
    'M': 0.50994575045207946,
    'zeta0': 0.58792033215918049,
    'A': 1.9630156472261735,
    'kzeta': 0.85999274048421426,
    'Pphi0': 0.29602703876310360,
    'Bmaj': 10.648153496774144,
    'Bmin': 3.8198121274697230,
    'Qbar': 4.0423810221040198e+19,
    'C': 5.8567426819253887,
    'Amaj': 4.6500203924269066,
    'Amin': 1.2067222894984821,
    'phi0': 0.14137166941154058,
}


@pytest.fixture
def device():
    """Return CPU device"""
    return torch.device('cpu')


@pytest.fixture(scope="session")
def default_model():
    """Scattering model with the Johnson et al. (2018) parameters"""
    return ScatteringModel()


@pytest.fixture(scope="session")
def kernel_230(default_model):
    """Approximate kernel referenced to 230 GHz"""
    return ApproximatedScatteringKernel(default_model, 230e9)


@pytest.fixture
def reference_constants():
    """Expected derived constants for the default model"""
    return dict(JOHNSON2018_CONSTANTS)
