from __future__ import annotations


class ApiError(Exception):
    """Ошибка, которую обработчик отдаёт клиенту как JSON {success: false, error}."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    status = 400


class NotFoundError(ApiError):
    status = 404


class MethodNotAllowedError(ApiError):
    status = 405


class InternalError(ApiError):
    status = 500
