class PortalError(Exception):
    """Base error converted to a ``{success: false, message}`` response."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(PortalError):
    status_code = 400


class NotFoundError(PortalError):
    status_code = 404


class AuthError(PortalError):
    status_code = 401


class InternalError(PortalError):
    status_code = 500
