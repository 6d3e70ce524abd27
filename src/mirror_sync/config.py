"""Resolved run configuration.

Reads server settings from CLI args, environment variables, .env files,
and the YAML config file.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    MIRROR_SYNC_URL: Server base URL
    MIRROR_SYNC_TOKEN: Personal access token
    MIRROR_SYNC_MAX_PARALLEL: Max concurrent clone/pull operations (1-100)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from .config_schema import MirrorSyncConfig, OrgConfig
from .errors import ConfigError
from .mirror.models import OrgSyncRequest

logger = logging.getLogger(__name__)


@dataclass
class Config:
    server_url: str
    token: str
    orgs: list[OrgConfig] = field(default_factory=list)
    listing: str = "orgs"
    api_prefix: str = "/api/v3"
    max_parallel: int = 20
    per_page: int = 100
    insecure: bool = False
    hooks: bool = True
    stall_timeout: int = 60
    request_timeout: float = 60.0

    def org_requests(self, only: list[str] | None = None) -> list[OrgSyncRequest]:
        """Expand configured organizations into sync requests.

        Args:
            only: Optional organization names to restrict the run to.

        Raises:
            ConfigError: If *only* names an organization that is not configured.
        """
        orgs = self.orgs
        if only:
            known = {org.name for org in orgs}
            unknown = sorted(set(only) - known)
            if unknown:
                raise ConfigError(
                    f"Organization(s) not in config: {', '.join(unknown)}"
                )
            orgs = [org for org in orgs if org.name in only]

        return [
            OrgSyncRequest(
                server_url=self.server_url,
                token=self.token,
                organization=org.name,
                output_dir=Path(org.output).expanduser(),
            )
            for org in orgs
        ]


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ConfigError: If URL format is invalid, the token is empty, or no
            organization is configured.
    """
    config.server_url = config.server_url.strip()

    if not config.server_url.startswith(("http://", "https://")):
        raise ConfigError(
            f"Invalid server URL '{config.server_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.server_url)
    if not parsed.hostname:
        raise ConfigError(
            f"Invalid server URL '{config.server_url}': URL must include a hostname"
        )

    config.server_url = config.server_url.removesuffix("/")

    if not config.token.strip():
        raise ConfigError(
            "Token cannot be empty. Set MIRROR_SYNC_TOKEN environment variable."
        )

    if not config.orgs:
        raise ConfigError("No organizations configured. Add an 'orgs' list to the config file.")

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def load_config(
    schema: MirrorSyncConfig,
    url: str | None = None,
    token: str | None = None,
    max_parallel: int | None = None,
    insecure: bool = False,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > YAML > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        schema: Validated YAML config (``MirrorSyncConfig()`` when absent).
        url: Override server URL.
        token: Override token.
        max_parallel: Override concurrency cap.
        insecure: Skip SSL verification (CLI flag).

    Returns:
        Validated Config instance.

    Raises:
        ConfigError: If URL or token is missing after checking all sources,
            or a value is out of range.
    """
    server_url = url or os.getenv("MIRROR_SYNC_URL") or schema.url
    if not server_url:
        raise ConfigError(
            "Server URL not found. Set MIRROR_SYNC_URL environment variable, "
            "pass --url CLI argument, or add 'url' to config.yaml."
        )

    final_token = token or os.getenv("MIRROR_SYNC_TOKEN") or schema.token
    if not final_token:
        raise ConfigError(
            "Token not found. Set MIRROR_SYNC_TOKEN environment variable, "
            "pass --token CLI argument, or add 'token' to config.yaml."
        )

    if max_parallel is not None:
        final_max_parallel = max_parallel
    else:
        max_parallel_raw = os.getenv("MIRROR_SYNC_MAX_PARALLEL")
        if max_parallel_raw is not None:
            try:
                final_max_parallel = int(max_parallel_raw)
            except ValueError:
                raise ConfigError(
                    f"Invalid MIRROR_SYNC_MAX_PARALLEL '{max_parallel_raw}': must be a number between 1 and 100"
                ) from None
        else:
            final_max_parallel = schema.max_parallel

    if not (1 <= final_max_parallel <= 100):
        raise ConfigError(
            f"Invalid max parallel '{final_max_parallel}': must be a number between 1 and 100"
        )

    config = Config(
        server_url=server_url,
        token=final_token.strip(),
        orgs=list(schema.orgs),
        listing=schema.listing,
        api_prefix=schema.api_prefix,
        max_parallel=final_max_parallel,
        per_page=schema.per_page,
        insecure=insecure or schema.insecure,
        hooks=schema.hooks,
        stall_timeout=schema.stall_timeout,
        request_timeout=schema.request_timeout,
    )

    validate_config(config)

    return config
