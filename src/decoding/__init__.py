"""
Output decoders, one per model output layout.
"""

from .base import OutputDecoder
from .factory import create_decoder
from .filtered import FilteredDecoder
from .dense_grid import DenseGridDecoder, sigmoid

__all__ = [
    "OutputDecoder",
    "create_decoder",
    "FilteredDecoder",
    "DenseGridDecoder",
    "sigmoid",
]
