"""
Errors Module

Exception types raised by the training engines and the run layer.

Classes:
    ConfigError:       Invalid training configuration
    InvalidModelError: Malformed or inconsistent imported model
"""

class ConfigError(ValueError):
    """
    Raised when a configuration holds out-of-range or inconsistent values.
    Reported before training starts, never discovered mid-run.
    """

class InvalidModelError(ValueError):
    """
    Raised when an exported model cannot be decoded or does not have the
    expected shape. The object being imported is discarded; live engine
    state is never touched.
    """
