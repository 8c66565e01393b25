from __future__ import annotations

from typing import Any


class RenderCADError(Exception):
    code = "api_error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None, status_code: int | None = None, response: Any = None):
        resolved = message or self.default_message
        super().__init__(resolved)
        self.message = resolved
        self.status_code = status_code
        self.response = response

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code!r})"


class BadRequestError(RenderCADError):
    code = "bad_request"
    default_message = "Invalid request"

    def __init__(self, message: str | None = None, response: Any = None):
        super().__init__(message, status_code=400, response=response)


class UnauthorizedError(RenderCADError):
    code = "unauthorized"
    default_message = "Invalid API token"

    def __init__(self, message: str | None = None, response: Any = None):
        super().__init__(message, status_code=401, response=response)


class NotFoundError(RenderCADError):
    code = "not_found"
    default_message = "Resource not found"

    def __init__(self, message: str | None = None, response: Any = None):
        super().__init__(message, status_code=404, response=response)


class RateLimitError(RenderCADError):
    code = "rate_limit_exceeded"
    default_message = "Monthly limit exceeded"

    def __init__(self, message: str | None = None, response: Any = None):
        super().__init__(message, status_code=429, response=response)


class ServerError(RenderCADError):
    code = "server_error"
    default_message = "Server error"

    def __init__(self, message: str | None = None, response: Any = None):
        super().__init__(message, status_code=500, response=response)


class ConfigurationError(Exception):
    """Invalid client configuration read from the environment."""


ERRORS_BY_STATUS: dict[int, type[RenderCADError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    404: NotFoundError,
    429: RateLimitError,
    500: ServerError,
}
