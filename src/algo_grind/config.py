"""Application configuration using pydantic-settings."""

import functools
from datetime import time
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'storage' in data:
            flattened['data_dir'] = data['storage'].get('data_dir')
            flattened['ledger_filename'] = data['storage'].get('ledger_filename')
        if 'openai' in data:
            flattened['chat_model'] = data['openai'].get('chat_model')
            flattened['recommendation_model'] = data['openai'].get('recommendation_model')
        if 'reminder' in data:
            reminder = data['reminder']
            flattened['reminder_webhook_url'] = reminder.get('webhook_url')
            flattened['reminder_time'] = reminder.get('time')
            flattened['reminder_interval_seconds'] = reminder.get('interval_seconds')
            flattened['user_identifier'] = reminder.get('user_identifier')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (optional: without a key the AI endpoints answer with fallbacks)
    openai_api_key: str | None = Field(default=None)
    chat_model: str = Field(default="gpt-4o-mini")
    recommendation_model: str = Field(default="gpt-4o-mini")

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Storage
    data_dir: Path | None = Field(default=None)
    ledger_filename: str = Field(default="algo_grind_ledger.json")

    # Goal reminder (optional: None disables the webhook)
    reminder_webhook_url: str | None = Field(default=None)
    reminder_time: time = Field(default=time(20, 0))
    reminder_interval_seconds: float = Field(default=300.0)
    user_identifier: str = Field(default="local")

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @field_validator("reminder_time", mode="before")
    @classmethod
    def _parse_reminder_time(cls, value: Any) -> Any:
        """Accept 'HH:MM' strings from YAML and env."""
        if isinstance(value, str) and value.count(":") == 1:
            return f"{value}:00"
        return value

    @property
    def ledger_path(self) -> Path:
        d = self.data_dir or (self.project_root / "data")
        d.mkdir(parents=True, exist_ok=True)
        return d / self.ledger_filename

    @property
    def personas_dir(self) -> Path:
        return self.project_root / "config" / "personas"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()


def load_persona(persona_name: str = "mentor") -> dict:
    """Load persona configuration from YAML file."""
    persona_path = _find_project_root() / "config" / "personas" / f"{persona_name}.yaml"
    if not persona_path.exists():
        raise FileNotFoundError(f"Persona file not found: {persona_path}")
    with open(persona_path, encoding='utf-8') as f:
        data = yaml.safe_load(f)
    return data.get('persona', {})
