from app.repository.base import UNSET, LearningRepository
from app.repository.fixtures import build_fixture_repository
from app.repository.memory import InMemoryLearningRepository
from app.repository.sqlalchemy import SqlAlchemyLearningRepository

__all__ = [
    "UNSET",
    "InMemoryLearningRepository",
    "LearningRepository",
    "SqlAlchemyLearningRepository",
    "build_fixture_repository",
]
