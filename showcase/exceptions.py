"""Custom exception hierarchy for showcase."""


class ShowcaseError(Exception):
    """Base for all showcase errors."""


class DuplicateMigrationError(ShowcaseError):
    """Two migrations were registered under the same version."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Migration version {version} is registered more than once")
        self.version = version


class DatasourceUnavailableError(ShowcaseError):
    """A backing store could not be reached."""


class MigrationError(ShowcaseError):
    """A migration's up action failed."""

    def __init__(self, version: int, cause: BaseException) -> None:
        super().__init__(f"Migration {version} failed: {cause}")
        self.version = version


class MigrationLockError(ShowcaseError):
    """Another process held the migration lock for too long."""


class NotFoundError(ShowcaseError):
    """The requested entity does not exist."""


class UpstreamServiceError(ShowcaseError):
    """A downstream HTTP service failed or returned an error status."""
