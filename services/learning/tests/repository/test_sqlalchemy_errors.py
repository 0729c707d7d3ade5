"""Error paths of the Postgres repository that need no database."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import DataStoreError
from app.repository import SqlAlchemyLearningRepository
from factories import ENROLLED_AT


def _session(result=None, error=None) -> AsyncMock:
    session = AsyncMock()
    if error is not None:
        session.execute.side_effect = error
    else:
        session.execute.return_value = result
    return session


@pytest.mark.asyncio
async def test_enrollment_missing_after_insert_is_a_store_error() -> None:
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    repo = SqlAlchemyLearningRepository(_session(result))

    with pytest.raises(DataStoreError, match="create_enrollment_if_absent"):
        await repo.create_enrollment_if_absent(uuid4(), uuid4(), at=ENROLLED_AT)


@pytest.mark.asyncio
async def test_driver_failure_is_wrapped() -> None:
    repo = SqlAlchemyLearningRepository(_session(error=OperationalError("SELECT 1", {}, Exception("down"))))

    with pytest.raises(DataStoreError, match="get_enrollment failed: OperationalError"):
        await repo.get_enrollment(uuid4(), uuid4())
