import logging

from . import (
    canon,
    config,
    exceptions,
    types,
    units,
    utils,
    readers,
    tariffs,
    pricing,
    formats,
)
from .readers import read_nem12
from .pricing import calculate_monthly

__all__ = [
    "canon",
    "config",
    "exceptions",
    "types",
    "units",
    "utils",
    "readers",
    "tariffs",
    "pricing",
    "formats",
    "read_nem12",
    "calculate_monthly",
]

# Library logging is silent unless the application configures handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())
