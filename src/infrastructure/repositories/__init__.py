from src.infrastructure.repositories.assignments import AssignmentRepository

__all__ = ["AssignmentRepository"]
