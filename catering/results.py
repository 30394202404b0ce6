from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class OperationResult:
    """Outcome of a write operation: ``success`` plus an optional Hebrew error.

    ``obj`` carries the created/updated object when there is one.
    """
    success: bool
    error: Optional[str] = None
    obj: Any = None

    @classmethod
    def ok(cls, obj: Any = None) -> 'OperationResult':
        return cls(success=True, obj=obj)

    @classmethod
    def fail(cls, error: str) -> 'OperationResult':
        return cls(success=False, error=error)

    def as_dict(self) -> dict:
        data = {'success': self.success}
        if self.error:
            data['error'] = self.error
        return data
