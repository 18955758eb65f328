from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class User:
    """Represents an authenticated actor within the system."""

    user_id: str
    email: str = ""
    role: str = "user"
    name: str | None = None

    @property
    def roles(self) -> list[str]:
        return [self.role]
