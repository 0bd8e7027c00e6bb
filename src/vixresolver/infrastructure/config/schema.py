"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from vixresolver.domain.entities import ResolutionMode

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


class ResolverConfig(BaseModel):
    """Immutable tunables of the resolution pipeline.

    Passed into every pipeline component at construction; tests swap in
    alternate hosts and timeouts by building their own instance.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(
        default="https://vixsrc.to",
        description="Primary video host serving the embed pages.",
    )
    language: str = Field(
        default="it",
        description="Value of the ?lang= parameter on the preferred embed variant. "
        "Empty disables the localized variant.",
    )
    accept_language: str = Field(
        default="it-IT,it;q=0.9,en-US;q=0.8,en;q=0.7",
        description="Accept-Language header sent with every page request.",
    )
    user_agent: str = Field(
        default=_DEFAULT_USER_AGENT,
        description="Desktop browser User-Agent for page fetches and playback.",
    )

    page_timeout_seconds: float = Field(
        default=15.0,
        description="Upper bound for a single page or JSON fetch.",
    )
    verify_timeout_seconds: float = Field(
        default=8.0,
        description="Upper bound for a single manifest verification.",
    )
    verify_concurrency: int = Field(
        default=4,
        description="Max parallel manifest verifications per embed URL.",
    )
    max_manifest_probe_bytes: int = Field(
        default=8192,
        description="Max bytes read from a candidate body during verification.",
    )

    quality_order: tuple[str, ...] = Field(
        default=("2160p", "4K", "1440p", "1080p", "720p", "480p", "360p"),
        description="Quality vocabulary, checked in order.",
    )
    host_hints: tuple[str, ...] = Field(
        default=(
            "rabbitstream",
            "rapid-cloud",
            "vizcloud",
            "vidcloud",
            "mzzcloud",
            "rcp",
        ),
        description="Host fragments of RapidCloud-style proxies behind nested frames.",
    )

    resolution_mode: ResolutionMode = Field(
        default="auto",
        description="'generic' frame chain, 'native' token synthesis, or 'auto' "
        "(chosen per embed page shape).",
    )
    version_page_path: str = Field(
        default="request-a-title",
        description="Sibling page whose page-state JSON carries the asset version.",
    )

    provider_name: str = Field(
        default="VixSrc (Direct)",
        description="Descriptor name for verified manifests.",
    )
    embed_name: str = Field(
        default="VixSrc (Embed)",
        description="Descriptor name for the external-embed fallback.",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an absolute http(s) URL")
        return v

    @field_validator("page_timeout_seconds", "verify_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("verify_concurrency", "max_manifest_probe_bytes")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("version_page_path")
    @classmethod
    def _strip_slashes(cls, v: str) -> str:
        return v.strip("/")

    def html_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": self.accept_language,
        }

    def json_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": self.accept_language,
        }


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (logging/resolver).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="vixresolver", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Resolver pipeline (YAML section: resolver.*)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "logging": {"level": self.log_level, "format": self.log_format},
            "resolver": self.resolver.model_dump(mode="json"),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env var examples (flat, explicit):
    - VIXRESOLVER_LOG_LEVEL
    - VIXRESOLVER_BASE_URL
    - VIXRESOLVER_LANGUAGE
    - VIXRESOLVER_PAGE_TIMEOUT_SECONDS
    - VIXRESOLVER_RESOLUTION_MODE
    """

    model_config = SettingsConfigDict(
        env_prefix="VIXRESOLVER_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    base_url: Optional[str] = None
    language: Optional[str] = None
    user_agent: Optional[str] = None
    page_timeout_seconds: Optional[float] = None
    verify_timeout_seconds: Optional[float] = None
    resolution_mode: Optional[ResolutionMode] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
