"""Exception hierarchy for mirror_sync.

Scope of each error decides how far it travels:

- ``ConfigError`` aborts the whole run.
- ``ListingError`` aborts one organization; the run continues.
- ``GitTransportError`` and ``RecoveryError`` fail one repository; its
  siblings are unaffected.

Divergence is not an error: it is reported as a ``PullStatus`` and handled
by the recovery policy.
"""


class MirrorSyncError(Exception):
    """Base class for all mirror_sync errors."""


class ConfigError(MirrorSyncError):
    """Configuration is missing, unreadable, or invalid."""


class ListingError(MirrorSyncError):
    """Repository listing for an organization could not be completed.

    Attributes:
        organization: Organization whose listing failed.
        page: Page number being fetched when the failure happened.
    """

    def __init__(self, organization: str, page: int, reason: str) -> None:
        self.organization = organization
        self.page = page
        self.reason = reason
        super().__init__(
            f"Error listing repositories for '{organization}' (page {page}): {reason}"
        )


class GitTransportError(MirrorSyncError):
    """A clone (or other transport operation) failed."""


class RecoveryError(MirrorSyncError):
    """The diverged mirror could not be moved aside."""
