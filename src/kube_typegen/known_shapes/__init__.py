"""Known shape exports."""

from .shape_detector import (
    SUPPRESSIBLE_SHAPES,
    KnownShape,
    detect_known_shape,
    reserved_type_names,
)

__all__ = [
    "KnownShape",
    "SUPPRESSIBLE_SHAPES",
    "detect_known_shape",
    "reserved_type_names",
]
