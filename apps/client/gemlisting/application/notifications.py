import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ToastKind(str, Enum):
    success = "success"
    error = "error"
    info = "info"


@dataclass(frozen=True)
class Toast:
    message: str
    kind: ToastKind = ToastKind.info
    duration_ms: Optional[int] = None


class Notifier:
    """Collects user-facing messages; a listener can render them as they arrive."""

    def __init__(self, listener: Optional[Callable[[Toast], None]] = None):
        self.listener = listener
        self.history: List[Toast] = []

    def notify(self, message: str, kind: ToastKind = ToastKind.info, duration_ms: Optional[int] = None) -> Toast:
        toast = Toast(message=message, kind=kind, duration_ms=duration_ms)
        self.history.append(toast)
        if kind is ToastKind.error:
            logger.error("notify: %s", message)
        else:
            logger.info("notify[%s]: %s", kind.value, message)
        if self.listener:
            self.listener(toast)
        return toast

    def success(self, message: str, duration_ms: Optional[int] = None) -> Toast:
        return self.notify(message, ToastKind.success, duration_ms)

    def error(self, message: str, duration_ms: Optional[int] = None) -> Toast:
        return self.notify(message, ToastKind.error, duration_ms)

    def info(self, message: str, duration_ms: Optional[int] = None) -> Toast:
        return self.notify(message, ToastKind.info, duration_ms)

    def messages(self, kind: Optional[ToastKind] = None) -> List[str]:
        return [t.message for t in self.history if kind is None or t.kind is kind]
