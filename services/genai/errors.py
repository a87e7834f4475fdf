"""Failures raised by the generative service client."""


class GenerativeServiceError(Exception):
    """Base class for errors surfaced by `GenerativeServiceClient`."""


class RemoteCallError(GenerativeServiceError):
    """Network failure, non-success status, or unparseable response."""


class NoImageProducedError(GenerativeServiceError):
    """The image request succeeded but no part carried image data."""
