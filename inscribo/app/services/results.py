"""Success/error results returned by the composed workflows."""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from inscribo.app.core.errors import FunnelError

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[FunnelError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


def capture(operation: Callable[..., T], *args, **kwargs) -> OperationResult[T]:
    """Run ``operation`` and fold expected domain failures into the result."""
    try:
        return OperationResult(value=operation(*args, **kwargs))
    except FunnelError as exc:
        return OperationResult(error=exc)
