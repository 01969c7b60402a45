from . import records, reconstruct, nem12
from .nem12 import Nem12Parser, read_nem12
from .reconstruct import IntervalReconstructor

__all__ = [
    "records",
    "reconstruct",
    "nem12",
    "Nem12Parser",
    "IntervalReconstructor",
    "read_nem12",
]
