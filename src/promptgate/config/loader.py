"""Locating, reading and validating the promptgate YAML file.

A config file is optional for library use (every threshold has a default),
but the CLI looks for one in this order:

1. ``--config PATH``
2. ``$PROMPTGATE_CONFIG``
3. ``./promptgate.yaml``
4. ``$XDG_CONFIG_HOME/promptgate/config.yaml``

String values may reference the environment as ``${NAME}`` or
``${NAME:-fallback}``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from promptgate.config.schema import Config
from promptgate.paths import get_default_config_path

if TYPE_CHECKING:
    from collections.abc import Iterator

CONFIG_ENV_VAR = "PROMPTGATE_CONFIG"
LOCAL_CONFIG_NAME = "promptgate.yaml"

# ${NAME} or ${NAME:-fallback}
_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Z_][A-Z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")


class ConfigError(Exception):
    """Base class for configuration problems.

    ``path`` is the offending file when one is known.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigNotFoundError(ConfigError):
    """No config file at the requested path or any discovery location."""


class ConfigValidationError(ConfigError):
    """The file parsed but does not match the Config schema.

    ``validation_errors`` keeps pydantic's per-field error dicts.
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        validation_errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message, path)
        self.validation_errors = list(validation_errors or [])


class EnvironmentVariableError(ConfigError):
    """A ``${NAME}`` reference without fallback names an unset variable."""

    def __init__(self, var_name: str, path: Path | None = None) -> None:
        super().__init__(
            f"${{{var_name}}} is referenced in the config but {var_name} is not set "
            f"(use ${{{var_name}:-fallback}} to make it optional)",
            path,
        )
        self.var_name = var_name


def expand_env_vars(value: Any, *, strict: bool = True) -> Any:
    """Substitute environment references throughout a parsed YAML tree.

    Only strings are rewritten; numbers, booleans and nulls pass through.

    Args:
        value: Parsed YAML (mapping, list or scalar)
        strict: Raise for an unset variable that has no fallback. When False
            such references are left as written.

    Raises:
        EnvironmentVariableError: strict is set and a variable is missing

    Example:
        >>> os.environ["STATE_DIR"] = "/var/lib/promptgate"
        >>> expand_env_vars({"directory": "${STATE_DIR}", "key": "${KEY:-onboarding_state}"})
        {'directory': '/var/lib/promptgate', 'key': 'onboarding_state'}
    """
    if isinstance(value, dict):
        return {key: expand_env_vars(item, strict=strict) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item, strict=strict) for item in value]
    if not isinstance(value, str):
        return value

    def substitute(match: re.Match[str]) -> str:
        name = match.group("name")
        if name in os.environ:
            return os.environ[name]
        if match.group("fallback") is not None:
            return match.group("fallback")
        if strict:
            raise EnvironmentVariableError(name)
        return match.group(0)

    return _ENV_REFERENCE.sub(substitute, value)


def _search_order() -> Iterator[Path]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        yield Path(env_path).expanduser().resolve()
    yield Path.cwd() / LOCAL_CONFIG_NAME
    yield get_default_config_path()


def discover_config_path(explicit_path: str | Path | None = None) -> Path:
    """Resolve which config file to read.

    An explicit path is used as-is and must exist. Otherwise the first
    existing file in the discovery order wins.

    Raises:
        ConfigNotFoundError: Nothing was found
    """
    if explicit_path:
        path = Path(explicit_path).expanduser().resolve()
        if not path.is_file():
            raise ConfigNotFoundError(f"Config file not found: {path}", path)
        return path

    searched: list[Path] = []
    for candidate in _search_order():
        if candidate.is_file():
            return candidate
        searched.append(candidate)

    listing = "".join(f"\n  - {p}" for p in searched)
    raise ConfigNotFoundError(f"No config file found. Searched locations:{listing}")


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML config file into a mapping (empty file gives ``{}``).

    Raises:
        ConfigError: Unreadable file, bad YAML, or a top level that is not
            a mapping
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Top level of {path.name} must be a YAML mapping, got {type(data).__name__}"
        raise ConfigError(msg, path)
    return data


def _describe(errors: list[dict[str, Any]]) -> str:
    lines = [
        f"  - {'.'.join(str(part) for part in err['loc']) or '(root)'}: {err['msg']}"
        for err in errors
    ]
    return f"Config validation failed ({len(errors)} error(s)):\n" + "\n".join(lines)


def parse_config(raw_config: dict[str, Any], path: Path | None = None) -> Config:
    """Validate a raw mapping against the Config schema.

    Raises:
        ConfigValidationError: The mapping does not fit the schema
    """
    try:
        return Config.model_validate(raw_config)
    except ValidationError as e:
        errors = [dict(err) for err in e.errors()]
        raise ConfigValidationError(_describe(errors), path, errors) from e


def load_config(
    path: str | Path | None = None,
    *,
    expand_env: bool = True,
    allow_missing: bool = False,
) -> Config:
    """Find, read, expand and validate the configuration.

    Args:
        path: Explicit config file; None runs discovery
        expand_env: Substitute ``${NAME}`` references before validation
        allow_missing: When discovery finds nothing, return ``Config()``
            instead of raising. A missing explicit path still raises.

    Raises:
        ConfigNotFoundError: No file found (and not allowed to be missing)
        ConfigError: The file cannot be read or parsed
        EnvironmentVariableError: A referenced variable is unset
        ConfigValidationError: The content does not fit the schema

    Example:
        >>> load_config("~/.config/promptgate/config.yaml").prompt.max_prompt_count
        10
    """
    try:
        config_path = discover_config_path(path)
    except ConfigNotFoundError:
        if path or not allow_missing:
            raise
        return Config()

    raw_config = read_config_file(config_path)
    if expand_env:
        try:
            raw_config = expand_env_vars(raw_config)
        except EnvironmentVariableError as e:
            e.path = config_path
            raise
    return parse_config(raw_config, config_path)
