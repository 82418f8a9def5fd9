from .exceptions import (
    HexbinException,
    ConfigError,
    GridConfigError,
    ViewportError,
    MalformedFeatureError,
    FeatureSourceError,
    RecomputeSuperseded,
)
from .logger_config import setup_logger

__all__ = [
    "HexbinException",
    "ConfigError",
    "GridConfigError",
    "ViewportError",
    "MalformedFeatureError",
    "FeatureSourceError",
    "RecomputeSuperseded",
    "setup_logger",
]
