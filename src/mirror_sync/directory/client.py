"""Repository directory clients.

Two interchangeable ways to list an organization's repositories:

- ``OrgReposDirectory``: the ``/orgs/{org}/repos`` endpoint, whose pages
  are plain JSON arrays.
- ``SearchReposDirectory``: the ``/search/repositories`` endpoint, whose
  pages are ``{"items": [...]}`` envelopes.

Both paginate from page 1 until a page comes back empty and return the
repositories in server order.  Any failure on any page discards what was
collected so far and raises ``ListingError``.

The ``create_directory_client()`` factory maps the config ``listing``
value to an implementation.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from pydantic import ValidationError

from ..errors import ListingError
from ..mirror.models import RepositoryDescriptor

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/vnd.github+json"
API_VERSION = "2022-11-28"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class DirectoryClient(Protocol):
    """Protocol that all directory clients must satisfy."""

    def list(
        self, server_url: str, organization: str, token: str
    ) -> list[RepositoryDescriptor]:
        """Return every repository of *organization*.

        Raises:
            ListingError: If any page fails to load or decode.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Shared pagination
# ---------------------------------------------------------------------------


class _PagedDirectory:
    """Pagination, auth headers, and decoding shared by both strategies.

    Args:
        api_prefix: Path inserted between the server URL and the endpoint.
        per_page: Page size requested from the server.
        timeout: Read timeout in seconds for each page request.
        insecure: Disable TLS certificate verification.
        session: Optional pre-built ``requests.Session`` (tests).
    """

    def __init__(
        self,
        api_prefix: str = "/api/v3",
        per_page: int = 100,
        timeout: float = 60.0,
        insecure: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        self.api_prefix = api_prefix.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout
        self.insecure = insecure
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.verify = not self.insecure
        return self._session

    def _endpoint(self, server_url: str, organization: str) -> str:
        raise NotImplementedError

    def _params(self, organization: str, page: int) -> dict[str, Any]:
        raise NotImplementedError

    def _items(self, payload: Any) -> list[Any]:
        raise NotImplementedError

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": ACCEPT_HEADER,
            "X-GitHub-Api-Version": API_VERSION,
        }

    def _fetch_page(
        self, server_url: str, organization: str, token: str, page: int
    ) -> list[RepositoryDescriptor]:
        url = self._endpoint(server_url.rstrip("/"), organization)
        logger.debug("Fetching %s page %d", url, page)
        try:
            response = self.session.get(
                url,
                params=self._params(organization, page),
                headers=self._headers(token),
                timeout=(10, self.timeout),
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else 0
            raise ListingError(organization, page, f"HTTP {status}") from exc
        except requests.RequestException as exc:
            raise ListingError(organization, page, str(exc)) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ListingError(
                organization, page, f"invalid JSON response: {exc}"
            ) from exc

        try:
            entries = self._items(payload)
            return [RepositoryDescriptor.model_validate(e) for e in entries]
        except (TypeError, ValidationError) as exc:
            raise ListingError(
                organization, page, f"malformed repository entry: {exc}"
            ) from exc

    def list(
        self, server_url: str, organization: str, token: str
    ) -> list[RepositoryDescriptor]:
        """Collect all pages for *organization*, in server order.

        Raises:
            ListingError: If any page fails; nothing is returned in that case.
        """
        repos: list[RepositoryDescriptor] = []
        page = 1
        while True:
            entries = self._fetch_page(server_url, organization, token, page)
            if not entries:
                break
            repos.extend(entries)
            page += 1

        logger.info(
            "Found %d repositories in %s (%d pages)",
            len(repos),
            organization,
            page - 1,
        )
        return repos


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class OrgReposDirectory(_PagedDirectory):
    """List repositories through ``GET /orgs/{org}/repos``."""

    def _endpoint(self, server_url: str, organization: str) -> str:
        return f"{server_url}{self.api_prefix}/orgs/{organization}/repos"

    def _params(self, organization: str, page: int) -> dict[str, Any]:
        return {
            "type": "all",
            "sort": "full_name",
            "per_page": self.per_page,
            "page": page,
        }

    def _items(self, payload: Any) -> list[Any]:
        if not isinstance(payload, list):
            raise TypeError(
                f"expected a JSON array, got {type(payload).__name__}"
            )
        return payload


class SearchReposDirectory(_PagedDirectory):
    """List repositories through ``GET /search/repositories?q=org:{org}``."""

    def _endpoint(self, server_url: str, organization: str) -> str:
        return f"{server_url}{self.api_prefix}/search/repositories"

    def _params(self, organization: str, page: int) -> dict[str, Any]:
        return {
            "q": f"org:{organization}",
            "per_page": self.per_page,
            "page": page,
        }

    def _items(self, payload: Any) -> list[Any]:
        if not isinstance(payload, dict) or not isinstance(
            payload.get("items"), list
        ):
            raise TypeError("expected an object with an 'items' array")
        return payload["items"]


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_STRATEGY_MAP: dict[str, type[_PagedDirectory]] = {
    "orgs": OrgReposDirectory,
    "search": SearchReposDirectory,
}


def create_directory_client(listing: str, **kwargs: Any) -> DirectoryClient:
    """Create a directory client for the given listing strategy.

    Args:
        listing: One of ``"orgs"`` or ``"search"``.
        **kwargs: Passed to the client constructor (``api_prefix``,
            ``per_page``, ``timeout``, ``insecure``, ``session``).

    Returns:
        A ``DirectoryClient`` implementation instance.

    Raises:
        ValueError: If the strategy string is not recognised.
    """
    cls = _STRATEGY_MAP.get(listing)
    if cls is None:
        raise ValueError(
            f"Unknown listing strategy: '{listing}'. Valid strategies: {sorted(_STRATEGY_MAP.keys())}"
        )
    return cls(**kwargs)
