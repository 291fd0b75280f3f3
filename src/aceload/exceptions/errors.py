from __future__ import annotations

from typing import Any, Dict, Optional


class AceLoadException(Exception):
    """
    Base exception for the load generator.

    Carries a machine-readable ``code`` and free-form ``details`` so the CLI
    can report failures uniformly.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "ACELOAD_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details: Dict[str, Any] = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(AceLoadException):
    def __init__(self, message: str, field: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"field": field} if field else {}
        details.update(kwargs)
        super().__init__(message=message, code="VALIDATION_ERROR", details=details)


class ConfigurationError(AceLoadException):
    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"config_key": config_key} if config_key else {}
        details.update(kwargs)
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)


class NotFoundError(AceLoadException):
    def __init__(self, entity: str, key: str, **kwargs: Any):
        details: Dict[str, Any] = {"entity": entity, "key": key}
        details.update(kwargs)
        super().__init__(
            message=f"{entity} not found: {key}",
            code="NOT_FOUND",
            details=details,
        )


class TeardownFailedError(AceLoadException):
    """
    Removing generated data failed.

    When the load phase had already failed, ``load_error`` holds that cause so
    neither failure is lost. Leftover rows need manual cleanup before the next
    run.
    """

    def __init__(
        self,
        teardown_error: BaseException,
        load_error: Optional[BaseException] = None,
    ) -> None:
        self.teardown_error = teardown_error
        self.load_error = load_error
        message = f"Removing data failed: {teardown_error}"
        if load_error is not None:
            message += f" (while handling load failure: {load_error})"
        details: Dict[str, Any] = {"teardown_error": repr(teardown_error)}
        if load_error is not None:
            details["load_error"] = repr(load_error)
        super().__init__(message=message, code="TEARDOWN_FAILED", details=details)
