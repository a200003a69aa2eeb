"""
Domain errors raised by the service layer.

Routers never see SQL or FX failures directly; these two cover everything a
caller can get wrong. They are mapped to HTTP responses in app.main.
"""


class NotFoundError(LookupError):
    """The requested record does not exist or is not owned by the caller."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
        self.message = message


class InvalidParameterError(ValueError):
    """A filter, grouping or period value was not recognised."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
