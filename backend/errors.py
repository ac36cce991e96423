class AnalysisError(Exception):
    """Base class for errors raised by the analysis backend."""


class InvalidInput(AnalysisError, TypeError):
    """A reducer or client call received input of the wrong shape."""


class PlatformError(AnalysisError):
    """The remote logging platform failed or answered with an error status."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
