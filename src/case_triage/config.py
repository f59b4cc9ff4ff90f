"""Run configuration: YAML file, then CASE_TRIAGE_* environment overrides."""

import json
import os
import shlex
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from case_triage.errors import ConfigError

ENV_PREFIX = "CASE_TRIAGE_"

DEFAULT_QUERY = (
    "SELECT Id, CaseNumber, Subject, Type, Description, Origin, CreatedDate FROM Case "
    "WHERE Type IN ('Membership Advice', 'Member Retention') "
    "AND CaseTierCategorisation__c = null AND Origin IN ('Web', 'Email') "
    "AND CreatedDate = LAST_N_DAYS:2 AND Subtype__c != 'Optimisation Campaign' "
    "ORDER BY CreatedDate DESC"
)

# YAML section -> {key in section: field name}
_SECTION_KEYS: dict[str, dict[str, str]] = {
    "crm": {
        "base_url": "crm_base_url",
        "api_version": "crm_api_version",
        "client_id": "crm_client_id",
        "client_secret": "crm_client_secret",
        "sobject_type": "sobject_type",
        "record_key_field": "record_key_field",
        "query": "query",
    },
    "agent": {
        "base_url": "classification_base_url",
        "app_name": "app_name",
        "user_id": "user_id_template",
        "user_id_template": "user_id_template",
        "terminal_author": "terminal_author",
        "initial_state": "initial_session_state",
    },
    "identity": {
        "command": "identity_command",
    },
}


class TriageConfig(BaseModel):
    """Everything a run needs; passed to each component at construction."""

    model_config = ConfigDict(extra="forbid")

    crm_base_url: str = Field(..., description="Login host, e.g. https://example.my.salesforce.com")
    crm_api_version: str = "v63.0"
    crm_client_id: str
    crm_client_secret: SecretStr
    sobject_type: str = "Case"
    record_key_field: str = Field(default="CaseId", description="Result key naming the target record")
    query: str = DEFAULT_QUERY

    classification_base_url: str
    app_name: str = "ma_routing_agent"
    user_id_template: str = "u_salesforce"
    terminal_author: str = "json_generator"
    initial_session_state: dict[str, Any] = Field(
        default_factory=lambda: {"visit_count": 0, "preferred_language": "English"}
    )

    identity_command: list[str] = Field(
        default_factory=lambda: ["gcloud", "auth", "print-identity-token"]
    )
    request_timeout: float = 60.0
    step_delay: float = Field(default=0.0, description="Seconds to pause before each console step")

    @field_validator("crm_base_url", "classification_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("identity_command", mode="before")
    @classmethod
    def _split_command(cls, v: Any) -> Any:
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @property
    def token_url(self) -> str:
        return f"{self.crm_base_url}/services/oauth2/token"

    @classmethod
    def from_yaml(cls, path: str | Path, environ: Optional[Mapping[str, str]] = None) -> "TriageConfig":
        """Load from YAML (nested crm/agent/identity sections or flat keys), then apply env overrides."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"Config file {path} must contain a mapping, not {type(data).__name__}")
        return cls.from_mapping(data, environ=environ)

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None
    ) -> "TriageConfig":
        flat = _flatten(data)
        flat.update(_env_overrides(os.environ if environ is None else environ))
        return cls.model_validate(flat)


def _flatten(data: Mapping[str, Any]) -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        section = _SECTION_KEYS.get(key)
        if section is not None and isinstance(value, Mapping):
            for sub_key, sub_value in value.items():
                field = section.get(sub_key)
                if field is None:
                    raise ConfigError(f"Unknown option '{key}.{sub_key}'")
                flat[field] = sub_value
        else:
            flat[key] = value
    return flat


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in TriageConfig.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is None or raw == "":
            continue
        if name == "initial_session_state":
            try:
                overrides[name] = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{ENV_PREFIX}{name.upper()} is not valid JSON", str(e)) from e
        else:
            overrides[name] = raw
    return overrides


def load_config(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> TriageConfig:
    """
    Build the run configuration. Without a path, CASE_TRIAGE_CONFIG is consulted;
    with neither, options come from the environment alone.
    Any missing or invalid option raises ConfigError.
    """
    env = os.environ if environ is None else environ
    if path is None and env.get(ENV_PREFIX + "CONFIG"):
        path = Path(env[ENV_PREFIX + "CONFIG"])
    try:
        if path is not None:
            return TriageConfig.from_yaml(path, environ=env)
        return TriageConfig.from_mapping({}, environ=env)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {path}", str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", str(e)) from e
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigError(f"Invalid configuration: {', '.join(missing)}", str(e)) from e
