"""Reusable type definitions for the ternary mesh tree."""

from .base import CamelModel, StrictBaseModel
from .byte_arrays import Bytes32, HexBytes, coerce_to_bytes
from .exceptions import (
    EmptyInputError,
    InvalidIndexError,
    MalformedProofError,
    MissingParentError,
    SerializationError,
    TreeError,
    UninitializedError,
)

__all__ = [
    # Core types
    "Bytes32",
    "HexBytes",
    "coerce_to_bytes",
    "CamelModel",
    "StrictBaseModel",
    # Exceptions
    "TreeError",
    "EmptyInputError",
    "InvalidIndexError",
    "UninitializedError",
    "SerializationError",
    "MissingParentError",
    "MalformedProofError",
]
