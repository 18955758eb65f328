"""Domain layer: actors, capacity accounting and access policy."""

from src.domain.models import User

__all__ = ["User"]
