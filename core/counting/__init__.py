"""Card counting systems."""

from core.counting.base import CountingSystem
from core.counting.hilo import HiLoSystem, hi_lo_value

__all__ = [
    "CountingSystem",
    "HiLoSystem",
    "hi_lo_value",
]
