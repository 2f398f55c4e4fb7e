from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.enums import ErrorType


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an approval or nudge action, returned instead of raising."""

    success: bool
    message: str
    error_type: Optional[ErrorType] = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **data: Any) -> "ActionResult":
        return cls(success=True, message=message, data=dict(data))

    @classmethod
    def fail(cls, error_type: ErrorType, message: str) -> "ActionResult":
        return cls(success=False, message=message, error_type=error_type)

    def to_dict(self) -> dict:
        out: dict = {"success": self.success, "message": self.message}
        if not self.success:
            out["error"] = self.message
            out["error_type"] = self.error_type.value if self.error_type else None
        out.update(self.data)
        return out
