"""
Application Errors

Every failure the service layer can report is an AppError subclass carrying a
stable code, a user-facing message and the HTTP status the API answers with.
main.py turns them into JSON responses.
"""
from typing import Any, Optional


class AppError(Exception):
    code = "app_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


# ============ Pricing ==========
class UnsupportedPricingModel(AppError):
    code = "unsupported_pricing_model"


class InvalidSelection(AppError):
    code = "invalid_selection"


class MissingOption(InvalidSelection):
    code = "missing_option"


class InvalidOption(InvalidSelection):
    code = "invalid_option"


# ============ Order status ==========
class InvalidStatus(AppError):
    code = "invalid_status"


class InvalidTransition(AppError):
    code = "invalid_transition"


class OrderNotPayable(AppError):
    code = "order_not_payable"


# ============ Reports ==========
class InvalidDateRange(AppError):
    code = "invalid_date_range"


# ============ Catalog / users ==========
class ServiceInactive(AppError):
    code = "service_inactive"


class ServiceAlreadyActive(AppError):
    code = "service_already_active"


class ServiceAlreadyInactive(AppError):
    code = "service_already_inactive"


class UserAlreadyActive(AppError):
    code = "user_already_active"


class UserAlreadyInactive(AppError):
    code = "user_already_inactive"


# ============ Access ==========
class AuthError(AppError):
    code = "unauthorized"
    status_code = 401


class InvalidCredentials(AuthError):
    code = "invalid_credentials"


class Forbidden(AppError):
    code = "forbidden"
    status_code = 403


class UserInactive(Forbidden):
    code = "user_inactive"


class CannotModifySelf(Forbidden):
    code = "cannot_modify_self"


class LastAdmin(Forbidden):
    code = "last_admin"


class NotFound(AppError):
    code = "not_found"
    status_code = 404


# ============ Conflicts ==========
class Conflict(AppError):
    code = "conflict"
    status_code = 409


class EmailAlreadyRegistered(Conflict):
    code = "email_already_registered"


class OrderAlreadyPaid(Conflict):
    code = "order_already_paid"


class ConcurrentUpdate(Conflict):
    code = "concurrent_update"
