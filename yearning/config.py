"""Service configuration file and environment settings."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

_DSN_OPTIONS = "charset=utf8mb4&parseTime=True&loc=Local"


@dataclass
class MysqlConfig:
    host: str = ""
    user: str = ""
    password: str = ""
    db: str = ""
    port: str = ""


@dataclass
class GeneralConfig:
    secret_key: str = ""
    host: str = ""
    hours: int = 0
    rpc_addr: str = ""


@dataclass
class OidcConfig:
    enable: bool = False
    client_id: str = ""
    client_secret: str = ""
    scope: str = ""
    auth_url: str = ""
    token_url: str = ""
    user_url: str = ""
    redirect_url: str = ""
    session_key: str = ""
    user_name_key: str = ""
    real_name_key: str = ""
    email_key: str = ""


@dataclass
class Config:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    mysql: MysqlConfig = field(default_factory=MysqlConfig)
    oidc: OidcConfig = field(default_factory=OidcConfig)

    def dsn(self) -> str:
        """Connection string for the configured MySQL server."""
        m = self.mysql
        return f"{m.user}:{m.password}@tcp({m.host}:{m.port})/{m.db}?{_DSN_OPTIONS}"


def _norm(name: str) -> str:
    return name.replace("_", "").lower()


def _lookup(table: Mapping[str, Any], name: str) -> Any:
    wanted = _norm(name)
    for key, value in table.items():
        if _norm(key) == wanted:
            return value
    return None


def _section(cls: type, table: Any) -> Any:
    instance = cls()
    if not isinstance(table, Mapping):
        return instance
    for f in fields(cls):
        value = _lookup(table, f.name)
        if value is None:
            continue
        default = getattr(instance, f.name)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValueError(f"{f.name} must be a boolean")
        elif isinstance(default, int):
            value = int(value)
        else:
            value = str(value)
        setattr(instance, f.name, value)
    return instance


def load_config(path: str | os.PathLike[str], environ: Mapping[str, str] | None = None) -> Config:
    """Read the TOML configuration file.

    When the file cannot be read but the database is given through the
    environment (``MYSQL_USER``), an empty configuration is returned.
    """
    env = os.environ if environ is None else environ
    try:
        document = tomllib.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        if env.get("MYSQL_USER"):
            log.error("configuration file not loaded: %s", exc)
            return Config()
        raise
    return Config(
        general=_section(GeneralConfig, _lookup(document, "general")),
        mysql=_section(MysqlConfig, _lookup(document, "mysql")),
        oidc=_section(OidcConfig, _lookup(document, "oidc")),
    )


def resolve_settings(config: Config, environ: Mapping[str, str] | None = None) -> tuple[str, str]:
    """Return the token signing secret and the database DSN.

    The environment takes precedence when ``MYSQL_USER`` is set.
    """
    env = os.environ if environ is None else environ
    if env.get("MYSQL_USER", ""):
        dsn = (
            f"{env.get('MYSQL_USER', '')}:{env.get('MYSQL_PASSWORD', '')}"
            f"@tcp({env.get('MYSQL_ADDR', '')})/{env.get('MYSQL_DB', '')}?{_DSN_OPTIONS}"
        )
        return env.get("SECRET_KEY", ""), dsn
    return config.general.secret_key, config.dsn()