"""Tests for migration registration."""

import pytest

from showcase.exceptions import DuplicateMigrationError
from showcase.migrations import all_migrations
from showcase.migrations.base import Migration, build_registry


async def _noop(ds):
    pass


def test_build_registry_orders_by_version():
    registry = build_registry([
        Migration(300, _noop), Migration(100, _noop), Migration(200, _noop),
    ])
    assert list(registry) == [100, 200, 300]


def test_build_registry_rejects_duplicate_version():
    with pytest.raises(DuplicateMigrationError) as exc_info:
        build_registry([Migration(100, _noop, "a"), Migration(100, _noop, "b")])
    assert exc_info.value.version == 100
    assert "100" in str(exc_info.value)


def test_build_registry_is_read_only():
    registry = build_registry([Migration(100, _noop)])
    with pytest.raises(TypeError):
        registry[200] = Migration(200, _noop)


def test_build_registry_empty():
    assert len(build_registry([])) == 0


def test_migration_str_includes_name():
    assert str(Migration(100, _noop, "create_users")) == "100_create_users"
    assert str(Migration(100, _noop)) == "100"


def test_all_migrations_versions():
    registry = all_migrations()
    assert list(registry) == [
        20240226153000,
        20240301100000,
        20241219153001,
        20241220153000,
    ]
    assert registry[20240226153000].name == "create_user_table"


def test_all_migrations_is_rebuilt_each_call():
    assert all_migrations() is not all_migrations()
