"""Exceptions raised by the training and classification pipeline."""

from __future__ import annotations


class DocClassifierError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(DocClassifierError, ValueError):
    """Unknown classifier or feature algorithm name, or an invalid setting."""


class ResourceError(DocClassifierError, OSError):
    """A category file, corpus directory, or model could not be loaded."""
