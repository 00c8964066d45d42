from __future__ import annotations

from pydantic import BaseModel, Field, HttpUrl, field_validator


class RuntimeConfig(BaseModel):
    log_level: str = "INFO"
    github_adapter: str = "ghsidebar.adapters.github.graphql:GitHubGraphQLAdapter"
    rest_adapter: str = "ghsidebar.adapters.github.rest:GitHubRestAdapter"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        if value.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("Unsupported log level")
        return value.upper()


class GitHubConfig(BaseModel):
    token: str
    username: str
    # Optional: restrict every search to this organization.
    org: str | None = None
    api_base: HttpUrl = Field(default="https://api.github.com")
    graphql_url: HttpUrl = Field(default="https://api.github.com/graphql")
    page_size: int = 100
    request_timeout: float = 30.0

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("github.username must not be empty")
        return value

    @field_validator("org")
    @classmethod
    def validate_org(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, value: int) -> int:
        # GitHub caps search connections at 100 nodes per page.
        if not 1 <= value <= 100:
            raise ValueError("github.page_size must be between 1 and 100")
        return value

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("github.request_timeout must be positive")
        return value


class SidebarConfig(BaseModel):
    aggregation_timeout: float | None = 60.0
    batch_queries: bool = True
    detail_concurrency: int = 8

    @field_validator("aggregation_timeout")
    @classmethod
    def validate_aggregation_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("sidebar.aggregation_timeout must be positive if set")
        return value

    @field_validator("detail_concurrency")
    @classmethod
    def validate_detail_concurrency(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("sidebar.detail_concurrency must be positive")
        return value


class AppConfig(BaseModel):
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    github: GitHubConfig
    sidebar: SidebarConfig = Field(default_factory=SidebarConfig)
