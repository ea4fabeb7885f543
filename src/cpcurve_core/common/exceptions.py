from typing import Any, Optional


class InvalidParameterError(ValueError):
    """Raised when a curve parameter set (or a sampling argument) is rejected before computation."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value
