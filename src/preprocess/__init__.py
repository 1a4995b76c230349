"""
Preprocessing stage: captured frames to model input tensors.
"""

from .frame_preprocessor import FramePreprocessor, PreprocessConfig

__all__ = [
    "FramePreprocessor",
    "PreprocessConfig",
]
