"""Exceptions raised while planning and rendering a preview."""

import logging

logger = logging.getLogger(__name__)


class PreviewError(Exception):
    """Base exception with a message. Optionally logs it when raised."""
    def __init__(self, message="A preview error occurred", log=False):
        self.message = message
        super().__init__(self.message)
        if log:
            logger.error(message)


class DescriptorError(PreviewError):
    """A descriptor file is missing or cannot be parsed."""


class ConfigurationError(PreviewError):
    """The descriptor has no usable source."""


class ConstraintViolationError(PreviewError):
    """Sources disagree on their origin, or a source has an empty origin."""
    def __init__(self, message, indices=(), values=(), log=False):
        self.indices = tuple(indices)
        self.values = tuple(values)
        super().__init__(message, log=log)


class EnvironmentProbeError(PreviewError):
    """The working tree matched but its root could not be resolved."""


class RevisionResolutionError(PreviewError):
    """The checked-out revision of a working tree could not be resolved."""
    def __init__(self, message, path="", log=False):
        self.path = path
        super().__init__(message, log=log)


class RenderingError(PreviewError):
    """The renderer failed for one source; the whole pass is aborted."""
    def __init__(self, message, index=None, log=False):
        self.index = index
        super().__init__(message, log=log)


class MalformedDocumentError(PreviewError):
    """A rendered document is not a structured object."""
    def __init__(self, message, index=None, log=False):
        self.index = index
        super().__init__(message, log=log)


__all__ = [
    "ConfigurationError",
    "ConstraintViolationError",
    "DescriptorError",
    "EnvironmentProbeError",
    "MalformedDocumentError",
    "PreviewError",
    "RenderingError",
    "RevisionResolutionError",
]
