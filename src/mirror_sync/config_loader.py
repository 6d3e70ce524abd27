"""
Configuration file loader for mirror_sync.

Finds the config file by convention, resolves ``!include`` tags and
substitutes ``${VAR}`` references from the environment.  Exactly one file
is loaded per run: the highest-precedence one that exists.

Usage:
    from mirror_sync.config_loader import load_config_file

    raw = load_config_file()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MIRROR_SYNC_CONFIG"

# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------

# ${NAME} or ${NAME:-fallback}
_VAR_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand environment references in *value*.

    ``${NAME}`` becomes the variable's value, or an empty string when it is
    unset.  ``${NAME:-fallback}`` uses *fallback* when the variable is unset
    or empty.  An unterminated ``${`` is kept as written.

    Typical use is keeping the token out of the file: ``token: ${GITHUB_TOKEN}``.
    """

    def _substitute(match: re.Match) -> str:
        current = os.environ.get(match.group("name"))
        if current:
            return current
        return match.group("fallback") or ""

    return _VAR_REF.sub(_substitute, value)


def _interpolate_recursive(obj: Any) -> Any:
    """Apply ``interpolate_env_vars`` to every string in a parsed document."""
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(item) for key, item in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    return obj


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include <path>``.

    Relative include paths are resolved against the including file.  Each
    loader carries the chain of files above it so an include cycle is
    reported instead of recursing forever.  The stock ``yaml.SafeLoader``
    is left untouched.
    """

    def __init__(self, stream, include_stack: tuple[Path, ...] = ()) -> None:
        super().__init__(stream)
        self.include_stack = include_stack

    def include(self, node: yaml.ScalarNode) -> Any:
        target = Path(self.construct_scalar(node)).expanduser()
        if not target.is_absolute():
            target = Path(self.name).resolve().parent / target
        target = target.resolve()

        if target in self.include_stack:
            chain = " -> ".join(str(p) for p in (*self.include_stack, target))
            raise ValueError(f"Circular include detected: {chain}")
        if not target.is_file():
            raise FileNotFoundError(
                f"Include file not found: {target} (included from {self.name})"
            )

        return _load_yaml_with_includes(target, self.include_stack)


ConfigLoader.add_constructor("!include", ConfigLoader.include)


def _load_yaml_with_includes(
    path: Path, include_stack: tuple[Path, ...] = ()
) -> Any:
    """Parse *path* with ``ConfigLoader``, following ``!include`` tags."""
    path = path.resolve()
    with path.open(encoding="utf-8") as stream:
        loader = ConfigLoader(stream, include_stack=(*include_stack, path))
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    Search order:
        1. ``$MIRROR_SYNC_CONFIG``
        2. ``./config.yaml``
        3. ``./.mirror_sync/config.yml``
        4. ``~/.config/mirror_sync/config.yml``
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    cwd = Path.cwd()
    candidates = [
        Path(explicit).expanduser().resolve() if explicit else None,
        cwd / "config.yaml",
        cwd / ".mirror_sync" / "config.yml",
        Path.home() / ".config" / "mirror_sync" / "config.yml",
    ]
    return [p for p in candidates if p is not None and p.exists()]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load the configuration document.

    Args:
        path: Explicit config path (``--config``).  When ``None`` the first
            result of ``discover_config_files()`` is used.

    Returns:
        The parsed mapping with env vars interpolated.  An empty dict when
        no config file exists, so env vars alone can drive a run.

    Raises:
        ConfigError: If the file is unreadable, not valid YAML, or its root
            is not a mapping.
    """
    if path is None:
        found = discover_config_files()
        if not found:
            logger.debug("No config file found, relying on env vars")
            return {}
        path = found[0]
    elif not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Reading config file %s", path)
    try:
        document = _load_yaml_with_includes(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Error reading config file {path}: {exc}") from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(
            f"Config file {path} must contain a mapping, got {type(document).__name__}"
        )

    return _interpolate_recursive(document)
