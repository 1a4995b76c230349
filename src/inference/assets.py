"""
Model asset resolution.

Maps a model name (the configuration string the operator selects) to its
ModelConfig: file, input size, output layout and label table.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from models.config import LAYOUTS, NORMALIZATIONS, ModelConfig


class ModelAssetResolver:
    """
    Resolves models from the `models:` registry in the app config.

    Example:
        resolver = ModelAssetResolver(config["models"], base_dir="models")
        model = resolver.resolve("hazard-yolov8n")
    """

    def __init__(self, registry: Dict[str, Dict[str, Any]], base_dir: Optional[str] = None):
        self._registry = dict(registry or {})
        self._base_dir = base_dir

    def names(self) -> List[str]:
        return sorted(self._registry)

    def resolve(self, name: str) -> ModelConfig:
        """
        Build the ModelConfig for name.

        Raises:
            KeyError: If name is not in the registry.
            ValueError: If the entry is invalid.
        """
        if name not in self._registry:
            raise KeyError(f"Unknown model {name!r}; available: {', '.join(self.names()) or 'none'}")

        model = ModelConfig.from_dict(self._registry[name] or {}, name=name)
        if model.layout not in LAYOUTS:
            raise ValueError(f"Model {name!r}: layout must be one of {LAYOUTS}")
        if model.normalization not in NORMALIZATIONS:
            raise ValueError(f"Model {name!r}: normalization must be one of {NORMALIZATIONS}")
        if model.input_size <= 0:
            raise ValueError(f"Model {name!r}: input_size must be positive")
        if len(model.labels) == 0:
            raise ValueError(f"Model {name!r}: labels must not be empty")

        if model.file and self._base_dir and not os.path.isabs(model.file):
            model.file = os.path.join(self._base_dir, model.file)
        logging.info(
            f"Resolved model {name}: layout={model.layout}, input={model.input_size}, "
            f"classes={len(model.labels)}"
        )
        return model
