"""Root of the poster pipeline exception hierarchy.

Every subclass declares a machine-readable ``error_code`` and registers
itself under it, so a payload produced by ``to_dict`` can be mapped back
to its exception class with ``get_by_error_code``.
"""

from typing import Any, ClassVar


class PosterPipelineError(Exception):
    """Base exception for all poster pipeline errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        is_recoverable: Whether the user can fix the problem, e.g. by choosing
            another image. Network faults and programming errors are not.
        context: Additional debugging information.
    """

    error_code: ClassVar[str] = "INTERNAL_ERROR"
    is_recoverable: ClassVar[bool] = False

    _registry: ClassVar[dict[str, type["PosterPipelineError"]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Register the subclass under its error code."""
        super().__init_subclass__(**kwargs)
        cls._registry[cls.error_code] = cls

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            context: Additional key-value pairs for debugging.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return the payload handed to the presentation layer."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }

    def to_log_dict(self) -> dict[str, Any]:
        """Return the payload for structured logging: to_dict plus class and recoverability."""
        return {
            **self.to_dict(),
            "is_recoverable": self.is_recoverable,
            "exception_type": type(self).__name__,
        }

    @classmethod
    def get_by_error_code(cls, error_code: str) -> type["PosterPipelineError"] | None:
        """Look up an exception class by error code, or None if unknown."""
        return cls._registry.get(error_code)

    def __str__(self) -> str:
        """Return the message, followed by the context when there is one."""
        if not self.context:
            return self.message
        return f"{self.message} (context: {self.context})"

    def __repr__(self) -> str:
        """Return detailed representation."""
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"error_code={self.error_code!r}, context={self.context!r})"
        )
