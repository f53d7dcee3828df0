class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error", details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(BaseServiceError):
    """Raised when a requested record does not exist."""
    status_code = 404
    code = "NOT_FOUND"


class AuthenticationError(BaseServiceError):
    """Raised when credentials or tokens are missing or invalid."""
    status_code = 401
    code = "UNAUTHORIZED"


class PermissionDeniedError(BaseServiceError):
    """Raised when the current user may not act on a record."""
    status_code = 403
    code = "FORBIDDEN"


class ConflictError(BaseServiceError):
    """Raised when a unique value is already taken."""
    status_code = 409
    code = "CONFLICT"


class ValidationError(BaseServiceError):
    """Raised when data validation fails."""
    status_code = 400
    code = "VALIDATION_ERROR"


class BusinessRuleError(BaseServiceError):
    """Raised when a request is well formed but breaks a marketplace rule."""
    status_code = 400
    code = "BAD_REQUEST"


class OrderPlacementError(BusinessRuleError):
    """Raised when an order cannot be placed; the whole order is rolled back."""
    pass


class OrderStateError(BusinessRuleError):
    """Raised when an order's status does not allow the requested change."""
    pass


class CertificationRequiredError(PermissionDeniedError):
    """Raised when a seller lacks one of the required verified certifications."""
    code = "CERTIFICATION_REQUIRED"


class UploadValidationError(ValidationError):
    """Raised when an uploaded file has the wrong type or is too large."""
    pass


class DatabaseError(BaseServiceError):
    """Exception raised for database-related errors."""
    pass
