"""
Exceptions raised by TorchISS

All of them derive from built-in exception types so code that already
catches ValueError/RuntimeError around model construction keeps working.
"""


class ConfigurationError(ValueError):
    """A physical input parameter is outside its valid domain."""


class RootFindError(RuntimeError):
    """The anisotropy root-find failed to bracket or converge."""


class NumericInstabilityError(ArithmeticError):
    """A derived constant or kernel value is not finite."""
