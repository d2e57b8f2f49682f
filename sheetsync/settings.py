"""Settings resolution with named profile support."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "sheetsync" / "config.toml"


class SyncSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHEETSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # Google Sheets source
    sheet_id: str | None = None
    sheet_range: str = "Sheet1!A:I"
    # "auto" | "token" | "api-key" | "service-account-file" | "service-account" | "service-account-b64"
    # | "gcloud-adc" | "gcloud"
    google_auth: str = "auto"
    google_access_token: SecretStr | None = None
    google_api_key: SecretStr | None = None
    google_credentials_path: Path | None = None  # service account JSON key file
    google_service_account_email: str | None = None
    google_service_account_private_key: SecretStr | None = None  # PEM, literal \n allowed
    google_service_account_key: SecretStr | None = None  # base64 of the JSON key file

    # GitHub
    github_token: SecretStr | None = None
    github_auth: str = "token"  # "token" | "gh-cli"
    github_repo: str | None = None  # owner/repo
    github_project_title: str | None = None
    github_project_id: str | None = None  # project node ID, resolved to a title at run start

    pacing_interval: float = Field(default=1.0, ge=0)  # seconds between issue creations
    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs; env vars and .env win over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @property
    def repo_owner(self) -> str | None:
        return self.github_repo.split("/", 1)[0] if self.github_repo else None


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/sheetsync/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> SyncSettings:
    """Resolve the active profile and return a fully populated SyncSettings.

    Profile precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. SHEETSYNC_PROFILE env var
    3. default_profile key in ~/.config/sheetsync/config.toml
    4. First profile defined in ~/.config/sheetsync/config.toml

    Env vars and .env always override values from the profile.
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("SHEETSYNC_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        elif active not in toml_config:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    settings = SyncSettings(**profile_defaults)

    section = f"[{active or 'profile'}] section of {CONFIG_PATH}"
    missing = [
        name
        for name, value in (("sheet_id", settings.sheet_id), ("github_repo", settings.github_repo))
        if not value
    ]
    if missing:
        env_names = ", ".join(f"SHEETSYNC_{name.upper()}" for name in missing)
        typer.echo(f"Missing required settings: {', '.join(missing)}. Set {env_names} or add them to the {section}")
        raise typer.Exit(1)
    if settings.github_repo and "/" not in settings.github_repo:
        typer.echo(f"github_repo must look like owner/repo, got '{settings.github_repo}'")
        raise typer.Exit(1)
    if settings.github_auth == "token" and not settings.github_token:
        typer.echo(
            "Missing GitHub credentials. Set SHEETSYNC_GITHUB_TOKEN or "
            f"github_token in the {section}, "
            'or set github_auth = "gh-cli" to use the gh CLI.'
        )
        raise typer.Exit(1)

    return settings
