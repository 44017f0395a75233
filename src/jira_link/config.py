"""jira-link configuration using pydantic-settings.

This module defines the JiraLinkSettings class that reads configuration
from the GitHub Actions input environment. Actions exposes every input as
``INPUT_<NAME>`` with the input name upper-cased and hyphens preserved
(e.g. ``INPUT_JIRA-DOMAIN``); the underscore spelling
(``INPUT_JIRA_DOMAIN``) is accepted as well so the tool can be run from a
plain shell.

Runner context (event payload path, event name, actor, API URL) is read
from the standard ``GITHUB_*`` variables set by the Actions runner.
"""

from typing import Any, Optional

from pydantic import (
    AliasChoices,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.jira_link.errors import ConfigurationError


def _input(name: str) -> AliasChoices:
    """Build the environment aliases for an action input."""
    upper = name.upper()
    return AliasChoices(
        f"INPUT_{upper}",
        f"INPUT_{upper.replace('-', '_')}",
        name.replace("-", "_"),
    )


class RunnerContext(BaseSettings):
    """Runner flags that must be readable even when the inputs are invalid."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    github_actions: bool = Field(
        default=False,
        validation_alias=AliasChoices("GITHUB_ACTIONS", "github_actions"),
    )

    @field_validator("github_actions", mode="before")
    @classmethod
    def parse_github_actions(cls, v: Any) -> bool:
        """Only the literal ``true`` set by the runner enables annotations."""
        if isinstance(v, bool):
            return v
        return str(v or "").strip().lower() == "true"


class JiraLinkSettings(RunnerContext):
    """Automation configuration from the Actions input environment.

    Required fields (must be set, a missing value aborts the run before
    any network call):
    - github_token: Token used to read PR comments and post reminders
    - jira_domain: Jira host, e.g. ``acme.atlassian.net``
    - jira_user: Jira account used for basic auth
    - jira_api_token: API token paired with jira_user

    The three list names are optional; an unset list skips transitions
    for that PR state.
    """

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    github_token: str = Field(validation_alias=_input("github-token"))

    # Only "Closes <url>"-style references count when enabled
    github_require_keyword_prefix: bool = Field(
        default=True,
        validation_alias=_input("github-require-keyword-prefix"),
    )

    github_api_url: str = Field(
        default="https://api.github.com",
        validation_alias=AliasChoices("GITHUB_API_URL", "github_api_url"),
    )

    # -------------------------------------------------------------------------
    # Jira Configuration
    # -------------------------------------------------------------------------
    jira_domain: str = Field(validation_alias=_input("jira-domain"))
    jira_user: str = Field(validation_alias=_input("jira-user"))
    jira_api_token: str = Field(validation_alias=_input("jira-api-token"))

    jira_list_pr_draft: Optional[str] = Field(
        default=None,
        validation_alias=_input("jira-list-pr-draft"),
    )
    jira_list_pr_ready: Optional[str] = Field(
        default=None,
        validation_alias=_input("jira-list-pr-ready"),
    )
    jira_list_pr_merged: Optional[str] = Field(
        default=None,
        validation_alias=_input("jira-list-pr-merged"),
    )

    # -------------------------------------------------------------------------
    # Runtime Configuration
    # -------------------------------------------------------------------------
    http_timeout: float = Field(
        default=30.0,
        validation_alias=_input("http-timeout"),
    )
    log_level: str = Field(default="INFO", validation_alias=_input("log-level"))
    log_format: str = Field(
        default="console",
        validation_alias=_input("log-format"),
    )

    # Metrics are pushed at the end of the run when set
    prometheus_pushgateway: Optional[str] = Field(
        default=None,
        validation_alias=_input("prometheus-pushgateway"),
    )

    # -------------------------------------------------------------------------
    # Runner Context
    # -------------------------------------------------------------------------
    github_event_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_EVENT_PATH", "github_event_path"),
    )
    github_event_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_EVENT_NAME", "github_event_name"),
    )
    github_actor: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_ACTOR", "github_actor"),
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_token", "jira_user", "jira_api_token")
    @classmethod
    def validate_not_empty(cls, v: str, info: ValidationInfo) -> str:
        """Validate that required credentials are not empty."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()

    @field_validator("jira_domain")
    @classmethod
    def validate_jira_domain(cls, v: str) -> str:
        """Validate that the Jira domain is a bare host name."""
        if not v or not v.strip():
            raise ValueError("jira_domain cannot be empty")
        v = v.strip()
        if "://" in v or "/" in v:
            raise ValueError(
                "jira_domain must be a host name such as acme.atlassian.net, "
                "without scheme or path"
            )
        return v

    @field_validator("github_require_keyword_prefix", mode="before")
    @classmethod
    def default_blank_keyword_flag(cls, v: Any) -> Any:
        """Treat an empty action input as the default (required)."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return True
        return v

    @field_validator(
        "jira_list_pr_draft",
        "jira_list_pr_ready",
        "jira_list_pr_merged",
        "prometheus_pushgateway",
        "github_event_path",
        "github_event_name",
        "github_actor",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Unset action inputs arrive as empty strings."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("http_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the HTTP timeout is positive."""
        if v <= 0:
            raise ValueError("http_timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a standard logging level name."""
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(
                "log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate the log renderer name."""
        v = v.strip().lower()
        if v not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return v

    @property
    def jira_base_url(self) -> str:
        """Jira REST API v2 base URL."""
        return f"https://{self.jira_domain}/rest/api/2"


def get_settings(**overrides: Any) -> JiraLinkSettings:
    """Create and return a JiraLinkSettings instance.

    Values are read from the environment; keyword overrides take
    precedence and are mostly useful in tests.

    Returns:
        JiraLinkSettings: Configured settings instance.

    Raises:
        ConfigurationError: If required fields are missing or invalid.
    """
    try:
        return JiraLinkSettings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: "
            f"{error['msg']}"
            for error in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc
