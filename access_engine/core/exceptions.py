class AccessEngineException(Exception):
    """Base exception for the access engine"""

    pass


class UnauthorizedException(AccessEngineException):
    """Raised when JWT validation fails"""

    pass


class ForbiddenException(AccessEngineException):
    """Raised when the caller's tenant role is too low for an administrative operation"""

    pass


class NotFoundException(AccessEngineException):
    """Raised when resource not found"""

    pass


class CrossTenantAccessException(NotFoundException):
    """
    Raised by the tenant guard when an entity belongs to another tenant.

    Subclasses NotFoundException and carries the same message so callers
    cannot tell "wrong tenant" from "does not exist".
    """

    pass


class ConflictException(AccessEngineException):
    """Raised for duplicate level names and deletion of assigned levels"""

    pass


class ValidationException(AccessEngineException):
    """Raised for business logic validation errors"""

    pass


class StoreUnavailableException(AccessEngineException):
    """Raised when the permission store cannot be read or written"""

    pass
