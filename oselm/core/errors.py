from __future__ import annotations


class ELMError(Exception):
    """Base class for errors raised by oselm models."""


class InvalidDimension(ELMError, ValueError):
    """A size parameter is missing, non-integer or not positive."""


class MissingRequiredConfig(ELMError, ValueError):
    """A required configuration field was not supplied."""


class UnsupportedActivation(ELMError, ValueError):
    """Activation name is not registered and no callable was given."""


class DimensionMismatch(ELMError, ValueError):
    """Array shapes disagree with the model or with earlier batches."""


class ModelNotTrained(ELMError, RuntimeError):
    """Prediction was requested before any training batch."""
