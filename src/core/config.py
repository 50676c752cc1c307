"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Arranca la cuenta del catálogo como lo hacen las iCommands: un fichero de
  entorno más un fichero de autenticación o `IRODS_PASSWORD`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import InvalidArgumentError, MissingArgumentError

IRODS_ENV_FILE_DEFAULT = "~/.irods/irods_environment.json"
IRODS_AUTH_FILE_DEFAULT = "~/.irods/.irodsA"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "py-baton"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "py-baton"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "py-baton"
    return Path.home() / ".config" / "py-baton"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class EmptyFilterPolicy(str, Enum):
    """What metaquery does with an empty AVU filter list."""

    MATCH_ALL = "match_all"
    REJECT = "reject"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    The iRODS variables keep the names the iCommands use
    (`IRODS_ENVIRONMENT_FILE`, `IRODS_PASSWORD`); everything else uses the
    `PY_BATON_` prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="PY_BATON_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    irods_environment_file: str = Field(
        default=IRODS_ENV_FILE_DEFAULT,
        validation_alias=AliasChoices("IRODS_ENVIRONMENT_FILE", "irods_environment_file"),
        description="Path to the iRODS environment JSON file.",
    )
    irods_password: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("IRODS_PASSWORD", "irods_password"),
        description="Password used when no iRODS auth file is present.",
    )
    empty_avu_filter: EmptyFilterPolicy = Field(
        default=EmptyFilterPolicy.MATCH_ALL,
        description="match_all: an empty filter returns every entry; reject: usage error.",
    )


class CatalogAccount(BaseModel):
    """Everything the catalog client needs to open a session."""

    model_config = ConfigDict(frozen=True)

    environment_file: Path
    authentication_file: Path
    environment: dict[str, Any] = Field(default_factory=dict)
    password: SecretStr | None = Field(
        default=None,
        description="Set only when the auth file is absent.",
    )

    @property
    def host(self) -> str:
        return str(self.environment.get("irods_host", ""))

    @property
    def port(self) -> int:
        return int(self.environment.get("irods_port", 1247))

    @property
    def zone(self) -> str:
        return str(self.environment.get("irods_zone_name", ""))

    @property
    def user(self) -> str:
        return str(self.environment.get("irods_user_name", ""))


def irods_env_file_path(settings: AppSettings) -> Path:
    """Environment file path from settings, falling back to the default location."""

    raw = (settings.irods_environment_file or "").strip() or IRODS_ENV_FILE_DEFAULT
    return Path(os.path.normpath(os.path.expanduser(raw)))


def _read_environment(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(
            f"iRODS environment file '{path}' is not valid JSON",
            context={"path": str(path)},
            cause=exc,
        ) from exc
    if not isinstance(data, dict):
        raise InvalidArgumentError(
            f"iRODS environment file '{path}' must hold a JSON object",
            context={"path": str(path)},
        )
    return data


def load_account(settings: AppSettings, logger: Any) -> CatalogAccount:
    """Build the catalog account from the environment file.

    An existing auth file takes precedence over `IRODS_PASSWORD`.
    """

    env_path = irods_env_file_path(settings)
    if not env_path.exists():
        raise MissingArgumentError(
            f"iRODS environment file '{env_path}' does not exist",
            context={"path": str(env_path)},
        )
    if env_path.is_dir():
        raise InvalidArgumentError(
            f"iRODS environment file '{env_path}' is a directory",
            context={"path": str(env_path)},
        )

    environment = _read_environment(env_path)
    logger.info("loaded iRODS environment file", path=str(env_path))

    auth_raw = environment.get("irods_authentication_file") or IRODS_AUTH_FILE_DEFAULT
    auth_path = Path(os.path.expanduser(str(auth_raw)))

    password: SecretStr | None = None
    if not auth_path.exists():
        if settings.irods_password is None:
            raise MissingArgumentError(
                f"iRODS auth file '{auth_path}' was not present and the "
                "'IRODS_PASSWORD' environment variable needed to connect was not set",
                context={"auth_file": str(auth_path)},
            )
        if not settings.irods_password.get_secret_value():
            raise InvalidArgumentError(
                f"iRODS auth file '{auth_path}' was not present and the "
                "'IRODS_PASSWORD' environment variable was empty",
                context={"auth_file": str(auth_path)},
            )
        password = settings.irods_password

    account = CatalogAccount(
        environment_file=env_path,
        authentication_file=auth_path,
        environment=environment,
        password=password,
    )
    logger.info(
        "catalog account created",
        host=account.host,
        port=account.port,
        zone=account.zone,
        user=account.user,
        env_file=str(env_path),
        auth_file=str(auth_path),
        auth_scheme=environment.get("irods_authentication_scheme", "native"),
    )
    return account
