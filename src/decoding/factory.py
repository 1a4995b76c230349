"""
Decoder selection by model output layout.
"""

from __future__ import annotations

from models.config import LAYOUT_DENSE_GRID, LAYOUT_FILTERED, ModelConfig
from .base import OutputDecoder
from .dense_grid import DenseGridDecoder
from .filtered import FilteredDecoder


def create_decoder(model: ModelConfig) -> OutputDecoder:
    """
    Factory: pick the decoder for a model's declared output layout.

    The layout tag comes from model configuration; tensor shapes are never
    sniffed to guess it.

    Raises:
        ValueError: If the layout tag is unknown.
    """
    if model.layout == LAYOUT_FILTERED:
        return FilteredDecoder(model.labels, native_size=model.box_space)
    if model.layout == LAYOUT_DENSE_GRID:
        return DenseGridDecoder(model.labels, tuning=model.decoder)
    raise ValueError(f"Unknown output layout: {model.layout!r}")
