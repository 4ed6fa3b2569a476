"""Migration definitions and the registry builder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Mapping

from showcase.exceptions import DuplicateMigrationError

if TYPE_CHECKING:
    from showcase.datasources import Datasources

UpAction = Callable[["Datasources"], Awaitable[None]]


class MigrationStatus(str, Enum):
    PENDING = "pending"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class Migration:
    """A forward-only change applied once to the datasources.

    `up` receives the Datasources handle and raises on failure.
    """

    version: int
    up: UpAction
    name: str = ""

    def __str__(self) -> str:
        return f"{self.version}_{self.name}" if self.name else str(self.version)


def build_registry(migrations: Iterable[Migration]) -> Mapping[int, Migration]:
    """Index migrations by version in ascending order.

    Raises DuplicateMigrationError when a version appears twice, so a bad
    registry is rejected before anything runs.
    """
    by_version: dict[int, Migration] = {}
    for migration in migrations:
        if migration.version in by_version:
            raise DuplicateMigrationError(migration.version)
        by_version[migration.version] = migration
    return MappingProxyType(dict(sorted(by_version.items())))
