"""Monitor configuration: targets of pre-expanded API calls plus run settings.

The YAML layout follows the config block produced by ``api-health
gen-config``::

    name: ApiMonitor
    abbreviation: apimon
    request_builder: form
    targets:
      - default:
          apis:
            - url: https://api.example.com/users/42
              method: GET
              query: {verbose: true}
              body: null
              headers: {}
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from api_health_monitor.errors import ConfigError

DEFAULT_CONCURRENCY = 5
DEFAULT_SERVING_URL = "http://localhost"


class ApiCall(BaseModel):
    """A pre-expanded API call: path template already filled in, no query string."""

    url: str
    method: str = "GET"
    query: dict[str, Any] = {}
    body: dict[str, Any] | None = None
    headers: dict[str, Any] = {}


class Target(BaseModel):
    name: str = "default"
    apis: list[ApiCall] = []


class NotificationConfig(BaseModel):
    emails: list[str] = []


class MonitorConfig(BaseModel):
    """Settings for one ApiMonitor checker."""

    name: str = "ApiMonitor"
    abbreviation: str = "apimon"
    notify: bool = True
    column_size: int = 3
    request_builder: str = "form"
    include_optional_parameters: bool = False
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    timeout: float | None = None  # seconds; None keeps the HTTP client default
    form_content_type: str | None = None
    strict: bool = False
    schema_path: Path | None = None
    serving_url: str = Field(
        default_factory=lambda: os.getenv("API_HEALTH_SERVING_URL", DEFAULT_SERVING_URL)
    )
    notifications: NotificationConfig = NotificationConfig()
    targets: list[Target] = []

    @field_validator("targets", mode="before")
    @classmethod
    def _expand_named_targets(cls, value):
        """Accept ``[{default: {apis: [...]}}]`` as well as ``[{name, apis}]``."""
        if not isinstance(value, list):
            return value
        targets = []
        for item in value:
            if isinstance(item, dict) and len(item) == 1 and "apis" not in item and "name" not in item:
                name, body = next(iter(item.items()))
                targets.append({"name": name, **(body or {})})
            else:
                targets.append(item)
        return targets


def load_config(file_path: Path | str) -> MonitorConfig:
    """Load a MonitorConfig from a YAML file."""
    file_path = Path(file_path)
    if not file_path.is_file():
        raise ConfigError(f"Config file not found at: {file_path}")

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing config file {file_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {file_path}")

    try:
        return MonitorConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {file_path}: {e}") from e


def dump_config(config: MonitorConfig) -> str:
    """Serialize a MonitorConfig to YAML, targets in the named-mapping layout."""
    data = config.model_dump(mode="json", exclude_none=True, exclude={"targets"})
    data["targets"] = [
        {target.name: {"apis": [api.model_dump(mode="json") for api in target.apis]}}
        for target in config.targets
    ]
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
