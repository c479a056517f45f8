"""
Service error taxonomy

Every handler failure is expressed as one of these exceptions. The
application registers a single handler for ``ServiceError`` that turns it
into an ``{"error": message}`` JSON body with ``status_code``.
"""


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP status"""
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Missing or malformed input"""
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(ServiceError):
    """No credential, or an invalid/expired one"""
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(ServiceError):
    """Authenticated, but not entitled to the resource"""
    status_code = 403
    default_message = "Access denied"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found"


class StorageError(ServiceError):
    """Unexpected failure in the persistence gateway"""
    status_code = 500
    default_message = "Internal Server Error"


class UpstreamError(ServiceError):
    """Transport failure talking to the external generation service"""
    status_code = 500
    default_message = "Internal Server Error"
