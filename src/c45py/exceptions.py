"""Exceptions raised by c45py."""

from __future__ import annotations


class C45Error(Exception):
    """Base class for every error raised by the engine."""


class EmptyDatasetError(C45Error, ValueError):
    """No records were supplied."""


class MissingTargetAttributeError(C45Error, ValueError):
    """The target attribute is absent from the records."""

    def __init__(self, target: str):
        super().__init__(f"Target attribute '{target}' not found in data")
        self.target = target


class InvalidInputError(C45Error, ValueError):
    """Records are not a collection of uniform mappings, or a parameter is out of range."""


class NoSplittableAttributeError(C45Error, ValueError):
    """Every attribute is either the target or excluded from splitting."""


class ModelNotFoundError(C45Error, KeyError):
    """The registry holds no artifact for the requested id/version."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""
