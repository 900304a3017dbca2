"""
PairSwap: constant-product automated market maker.
"""

from . import logger  # configures logging on import

__version__ = "0.1.0"
