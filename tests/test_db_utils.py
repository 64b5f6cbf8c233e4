import importlib.util
import sqlite3

import pytest
from sqlalchemy.exc import OperationalError

from mytime_server.api_service.core.utils import is_lock_error, with_db_write_retry


def locked_error():
    return OperationalError("INSERT INTO time_logs", {}, sqlite3.OperationalError("database is locked"))


class FakePgLockError(Exception):
    pgcode = "55P03"


def test_is_lock_error():
    assert is_lock_error(locked_error())
    assert is_lock_error(OperationalError("UPDATE", {}, FakePgLockError("lock not available")))
    assert not is_lock_error(OperationalError("SELECT", {}, sqlite3.OperationalError("no such table: x")))
    assert not is_lock_error(ValueError("database is locked"))


@pytest.mark.asyncio
async def test_retry_recovers_from_lock():
    calls = []

    @with_db_write_retry(max_retries=5, initial_delay_seconds=0)
    async def write():
        calls.append(1)
        if len(calls) < 3:
            raise locked_error()
        return "stored"

    assert await write() == "stored"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_gives_up_after_max_retries():
    calls = []

    @with_db_write_retry(max_retries=3, initial_delay_seconds=0)
    async def write():
        calls.append(1)
        raise locked_error()

    with pytest.raises(OperationalError):
        await write()
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_does_not_retry_other_errors():
    calls = []

    @with_db_write_retry(max_retries=5, initial_delay_seconds=0)
    async def write():
        calls.append(1)
        raise OperationalError("INSERT", {}, sqlite3.OperationalError("disk I/O error"))

    with pytest.raises(OperationalError):
        await write()
    assert len(calls) == 1


def test_async_sqlalchemy_runtime_is_installed():
    # AsyncSession bridges to the sync ORM through greenlet
    assert importlib.util.find_spec("greenlet") is not None
