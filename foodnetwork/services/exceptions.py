"""Domain errors raised by the service layer and mapped to HTTP by the routers."""


class ServiceError(Exception):
    """Base class for all service errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when an entity id does not resolve."""
    pass


class ProductNotFoundError(NotFoundError):
    """Exception raised when the requested product doesn't exist."""
    pass


class OrderNotFoundError(NotFoundError):
    pass


class RequestNotFoundError(NotFoundError):
    """Exception raised when the product request doesn't exist."""
    pass


class UserNotFoundError(NotFoundError):
    pass


class ValidationFailedError(ServiceError):
    """Raised for malformed input the schemas could not catch."""
    pass


class BusinessRuleViolation(ServiceError):
    """Raised when a well-formed operation breaks a business rule."""
    pass


class InsufficientStockError(BusinessRuleViolation):
    """Exception raised when there's not enough stock to fulfill an order."""
    pass


class NegativeStockError(BusinessRuleViolation):
    """Raised when a stock adjustment would take stock below zero."""
    pass


class DuplicateSupportError(BusinessRuleViolation):
    """Raised when a user supports the same request twice."""
    pass


class InvalidStatusTransitionError(BusinessRuleViolation):
    pass


class ProductInUseError(BusinessRuleViolation):
    """Raised when deleting a product that orders still reference."""
    pass


class EmailTakenError(BusinessRuleViolation):
    pass
