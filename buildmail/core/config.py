"""Typed configuration loading and access.

The whole run is driven by one config.toml. It is parsed once into frozen
dataclasses which are then handed to each component explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_float,
    get_int,
    get_str,
    get_str_list,
    get_table,
    get_table_list,
)

__all__ = [
    "ArtifactsConfig",
    "ChangelogSource",
    "Config",
    "ConfigError",
    "MailConfig",
    "SvnConfig",
    "TrimMode",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_PRODUCTS",
    "PASSWORD_ENV",
    "load_config",
]

DEFAULT_CONFIG_NAME = "config.toml"
PASSWORD_ENV = "BUILDMAIL_SMTP_PASSWORD"

DEFAULT_PRODUCTS = ("Dispense", "Office", "Register", "Scheduler")
DEFAULT_SUFFIX = ".zip"
DEFAULT_PROBE_LIMIT = 30
DEFAULT_MARKER = "build"
DEFAULT_JOINER = "<br>"
DEFAULT_SVN_TIMEOUT = 120.0
DEFAULT_SMTP_PORT = 25
DEFAULT_SMTP_TIMEOUT = 60.0


class TrimMode(StrEnum):
    """How the product prefix and file suffix are removed from a filename.

    CHARSET strips any leading/trailing characters contained in the tokens
    (the historical behavior, which can over-trim). EXACT removes the
    tokens themselves.
    """

    CHARSET = "charset"
    EXACT = "exact"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None

    @property
    def hint(self) -> str | None:
        return str(self.path) if self.path is not None else None


@dataclass(frozen=True, slots=True)
class MailConfig:
    """SMTP settings and the recipient list."""

    sender: str | None = None
    sender_name: str = "Build Bot"
    server: str | None = None
    port: int = DEFAULT_SMTP_PORT
    username: str | None = None
    password: str | None = None
    starttls: bool = False
    timeout: float = DEFAULT_SMTP_TIMEOUT
    recipients: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ArtifactsConfig:
    """Drop directory holding one flat list of build archives."""

    directory: Path | None = None
    products: tuple[str, ...] = DEFAULT_PRODUCTS
    suffix: str = DEFAULT_SUFFIX
    trim: TrimMode = TrimMode.CHARSET


@dataclass(frozen=True, slots=True)
class SvnConfig:
    limit: int = DEFAULT_PROBE_LIMIT
    marker: str = DEFAULT_MARKER
    timeout: float = DEFAULT_SVN_TIMEOUT
    joiner: str = DEFAULT_JOINER


@dataclass(frozen=True, slots=True)
class ChangelogSource:
    """A working copy (or URL) whose build history is summarized."""

    name: str
    path: str


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    mail: MailConfig = field(default_factory=MailConfig)
    artifacts: ArtifactsConfig = field(default_factory=ArtifactsConfig)
    svn: SvnConfig = field(default_factory=SvnConfig)
    changelogs: tuple[ChangelogSource, ...] = ()

    def changelog(self, name: str) -> ChangelogSource | None:
        """Look up a changelog source by name (case-insensitive)."""
        for source in self.changelogs:
            if source.name.lower() == name.lower():
                return source
        return None

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, object],
        env: Mapping[str, str] | None = None,
    ) -> Config:
        """Create Config from a parsed TOML mapping.

        Raises:
            TypeError: a key holds a value of the wrong type.
            ValueError: a value is out of range or unknown.
        """
        environ = os.environ if env is None else env
        mail: StrDict = get_table(data, "mail") or {}
        artifacts: StrDict = get_table(data, "artifacts") or {}
        svn: StrDict = get_table(data, "svn") or {}

        directory = get_str(artifacts, "directory")
        trim_raw = get_str(artifacts, "trim") or TrimMode.CHARSET.value
        try:
            trim = TrimMode(trim_raw)
        except ValueError:
            raise ValueError(
                f"unknown trim mode '{trim_raw}' (expected charset or exact)"
            ) from None

        products = get_str_list(artifacts, "products")
        limit = get_int(svn, "limit") or DEFAULT_PROBE_LIMIT
        if limit < 2:
            raise ValueError("'svn.limit' must be at least 2")

        changelogs: list[ChangelogSource] = []
        for entry in get_table_list(data, "changelog"):
            name = get_str(entry, "name")
            path = get_str(entry, "path")
            if name is None or path is None:
                raise ValueError("every [[changelog]] needs a name and a path")
            changelogs.append(ChangelogSource(name=name, path=path))

        password = get_str(mail, "password") or environ.get(PASSWORD_ENV) or None

        return cls(
            mail=MailConfig(
                sender=get_str(mail, "sender"),
                sender_name=get_str(mail, "sender_name") or "Build Bot",
                server=get_str(mail, "server"),
                port=get_int(mail, "port") or DEFAULT_SMTP_PORT,
                username=get_str(mail, "username"),
                password=password,
                starttls=bool(get_bool(mail, "starttls")),
                timeout=get_float(mail, "timeout") or DEFAULT_SMTP_TIMEOUT,
                recipients=tuple(get_str_list(mail, "recipients") or ()),
            ),
            artifacts=ArtifactsConfig(
                directory=Path(directory).expanduser() if directory else None,
                products=tuple(products) if products else DEFAULT_PRODUCTS,
                suffix=get_str(artifacts, "suffix") or DEFAULT_SUFFIX,
                trim=trim,
            ),
            svn=SvnConfig(
                limit=limit,
                marker=get_str(svn, "marker") or DEFAULT_MARKER,
                timeout=get_float(svn, "timeout") or DEFAULT_SVN_TIMEOUT,
                # joiner may legitimately be whitespace, so it is not stripped
                joiner=_raw_str(svn, "joiner", DEFAULT_JOINER),
            ),
            changelogs=tuple(changelogs),
        )


def _raw_str(table: Mapping[str, object], key: str, default: str) -> str:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string")
    return value


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except IsADirectoryError:
        return Err(ConfigError(f"Config path is a directory: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(
    path: Path,
    env: Mapping[str, str] | None = None,
) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to config.toml
        env: Environment used for secrets (defaults to os.environ)

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value, env=env))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
