"""Category constructors for ``ErrorDetail``.

Every constructor takes an explicit code from ``codes``. Only dependency
failures may be retried.
"""

from __future__ import annotations

from collections.abc import Mapping

from .types import ErrorCategory, ErrorDetail


def validation_error(
    message: str, *, code: str, metadata: Mapping[str, str] | None = None
) -> ErrorDetail:
    return _detail(ErrorCategory.VALIDATION, message, code, metadata)


def not_found_error(
    message: str, *, code: str, metadata: Mapping[str, str] | None = None
) -> ErrorDetail:
    return _detail(ErrorCategory.NOT_FOUND, message, code, metadata)


def dependency_error(
    message: str,
    *,
    code: str,
    retryable: bool = True,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return _detail(ErrorCategory.DEPENDENCY, message, code, metadata, retryable)


def internal_error(
    message: str, *, code: str, metadata: Mapping[str, str] | None = None
) -> ErrorDetail:
    return _detail(ErrorCategory.INTERNAL, message, code, metadata)


def _detail(
    category: ErrorCategory,
    message: str,
    code: str,
    metadata: Mapping[str, str] | None,
    retryable: bool = False,
) -> ErrorDetail:
    return ErrorDetail(
        code=code,
        message=message,
        category=category,
        retryable=retryable,
        metadata=dict(metadata or {}),
    )
