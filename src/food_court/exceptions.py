"""
Ошибки доменного слоя.

Каждая ошибка несёт стабильный машиночитаемый `kind` и HTTP-статус,
в JSON ответ превращает обработчик в main.py.
"""


class FoodCourtError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class ValidationError(FoodCourtError):
    kind = "validation_error"
    status_code = 400


class NotFound(FoodCourtError):
    kind = "not_found"
    status_code = 404


class InvalidTransition(FoodCourtError):
    kind = "invalid_transition"
    status_code = 409


class AuthFailure(FoodCourtError):
    kind = "auth_failure"
    status_code = 401


class PaymentVerificationFailed(AuthFailure):
    kind = "payment_verification_failed"
    status_code = 400


class Conflict(FoodCourtError):
    kind = "conflict"
    status_code = 409


class UpstreamFailure(FoodCourtError):
    kind = "upstream_failure"
    status_code = 502
