"""Configuration models and loading."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "bandwidth-hero-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"

PLACEHOLDER_BODY = "bandwidth-hero-proxy"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8080


class FetchSettings(BaseModel):
    timeout: float | None = None
    follow_redirects: bool = True


class DirectiveDefaults(BaseModel):
    """Compression directives used when the client sends no override."""

    use_webp: bool
    grayscale: bool
    quality: int = Field(default=40, ge=1, le=100)


class DefaultsSettings(BaseModel):
    # The two entry points default to opposite output settings.
    event: DirectiveDefaults = Field(
        default_factory=lambda: DirectiveDefaults(use_webp=False, grayscale=True)
    )
    server: DirectiveDefaults = Field(
        default_factory=lambda: DirectiveDefaults(use_webp=True, grayscale=False)
    )


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)
    placeholder: str = PLACEHOLDER_BODY


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
