"""
graphview/errors.py

Exception types raised at the pipeline boundaries.

GraphFetchError
    A request to the platform API failed, either at the transport level
    (``status_code`` is None) or with a non-2xx response.

MalformedMessage
    A stream frame could not be decoded into a known update shape.

UnknownApplication
    The viewer service was asked about an application it has no view for.

None of these are allowed to escape the synchronizer: they are caught,
logged and turned into error / offline state for the render layer.
"""
from __future__ import annotations


class GraphviewError(Exception):
    """Base class for all graphview errors."""


class GraphFetchError(GraphviewError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedMessage(GraphviewError):
    pass


class UnknownApplication(GraphviewError):
    def __init__(self, app_name: str) -> None:
        super().__init__(f"No view mounted for application '{app_name}'.")
        self.app_name = app_name
