from pydantic import BaseModel, ConfigDict, Field, field_validator


class SiteRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_url: str

    @field_validator("base_url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an absolute http(s) URL")
        return value.rstrip("/")


class SitemapRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    max_age_months: int = Field(default=0, ge=0)  # 0 = unlimited
    exclude_types: list[str] = Field(default_factory=list)
    urls_per_page: int = Field(default=1000, ge=1, le=50000)
    cache_ttl_seconds: int = Field(default=3600, ge=1)
    rebuild_poll_seconds: float = Field(default=5.0, gt=0)
    rebuild_max_attempts: int = Field(default=3, ge=1)
    rebuild_retry_delay_seconds: int = Field(default=60, ge=0)


class RedirectRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    auto_redirect_on_rename: bool = True


class Rules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    site: SiteRules
    sitemap: SitemapRules = Field(default_factory=SitemapRules)
    redirects: RedirectRules = Field(default_factory=RedirectRules)
