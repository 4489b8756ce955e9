"""Core types: results, configuration, exit codes."""

from .config import ActionConfig, BumpLabels, ConfigError, Repository, RunEnvironment
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ActionConfig",
    "BumpLabels",
    "ConfigError",
    "Repository",
    "RunEnvironment",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
