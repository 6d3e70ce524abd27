"""Repository directory clients (remote listing API)."""

from .client import (
    DirectoryClient,
    OrgReposDirectory,
    SearchReposDirectory,
    create_directory_client,
)

__all__ = [
    "DirectoryClient",
    "OrgReposDirectory",
    "SearchReposDirectory",
    "create_directory_client",
]
