from __future__ import annotations

import typing as t


class SessionStoreError(Exception):
    """Base error raised by the session store and its database adapters."""

    def __init__(self, message: str, status_code: t.Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code!r})"


class NotFoundError(SessionStoreError):
    """Document (or index) does not exist."""

    def __init__(self, message: str = "not_found", status_code: t.Optional[int] = 404) -> None:
        super().__init__(message, status_code)


class ConflictError(SessionStoreError):
    """Lost an optimistic-concurrency race; the write may be retried."""

    def __init__(self, message: str = "conflict", status_code: t.Optional[int] = 409) -> None:
        super().__init__(message, status_code)


class TransientError(SessionStoreError):
    """Network or rate-limit class failure from the backing database."""


class ConfigurationError(SessionStoreError, ValueError):
    """Malformed construction parameters."""


def error_for_status(status_code: int, message: str) -> SessionStoreError:
    if status_code == 404:
        return NotFoundError(message, status_code)
    if status_code == 409:
        return ConflictError(message, status_code)
    if status_code == 429 or status_code >= 500:
        return TransientError(message, status_code)
    return SessionStoreError(message, status_code)
