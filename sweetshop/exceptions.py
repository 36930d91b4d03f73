"""Errors raised by the sweet shop services and mapped to HTTP responses in main.py"""


class SweetShopError(Exception):
    """Base exception for the sweet shop"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(SweetShopError):
    """Malformed, missing or out-of-range input"""

    status_code = 400


class AuthenticationError(SweetShopError):
    """Caller could not be identified"""

    status_code = 401


class MissingTokenError(AuthenticationError):
    def __init__(self, message: str = "Access token required"):
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class UnknownIdentityError(AuthenticationError):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthorizationError(SweetShopError):
    """Identity is valid but lacks the required privilege"""

    status_code = 403

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class NotFoundError(SweetShopError):
    status_code = 404


class ConflictError(SweetShopError):
    """Uniqueness violation on a username or sweet name"""

    status_code = 400


class InsufficientStockError(SweetShopError):
    status_code = 400

    def __init__(self, message: str = "Insufficient quantity in stock"):
        super().__init__(message)
