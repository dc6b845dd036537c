from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

StatusState = Literal["idle", "in_progress", "success", "error"]


@dataclass
class ActionStatus:
    """Idle, in progress, or settled with exactly one message."""

    state: StatusState = "idle"
    message: str | None = None

    @property
    def in_progress(self) -> bool:
        return self.state == "in_progress"

    @property
    def settled(self) -> bool:
        return self.state in {"success", "error"}

    @property
    def error(self) -> str | None:
        return self.message if self.state == "error" else None

    @property
    def success(self) -> str | None:
        return self.message if self.state == "success" else None

    def start(self) -> None:
        self.state = "in_progress"
        self.message = None

    def succeed(self, message: str | None = None) -> None:
        self.state = "success"
        self.message = message

    def fail(self, message: str) -> None:
        self.state = "error"
        self.message = message

    def reset(self) -> None:
        self.state = "idle"
        self.message = None
