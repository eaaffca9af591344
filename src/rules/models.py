from pydantic import BaseModel, Field, field_validator, model_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    required_sections: list[str]

class AnalyticsRules(BaseModel):
    overview_slug: str = "blog"
    default_window_days: int = Field(default=28, ge=0)
    all_time_window_days: int = Field(default=365, ge=1)
    tracked_authors: list[str] = Field(default_factory=lambda: ["Tiago", "Vicente"])
    direct_values: list[str] = Field(default_factory=lambda: ["", "direct"])
    strip_host_prefix: str = "www."
    utm_source_param: str = "utm_source"

class CrawlerSignatureRule(BaseModel):
    name: str
    pattern: str

class StaticAssetRules(BaseModel):
    prefixes: list[str]
    paths: list[str]
    extensions: list[str]

class CrawlerRules(BaseModel):
    signatures: list[CrawlerSignatureRule]
    named_series: dict[str, str]
    other_key: str = "other"
    top_paths_limit: int = Field(default=10, ge=1)
    content_prefix: str = "/blog/"
    static: StaticAssetRules

    @field_validator("signatures")
    @classmethod
    def signatures_not_empty(cls, v: list[CrawlerSignatureRule]) -> list[CrawlerSignatureRule]:
        if not v:
            raise ValueError("at least one crawler signature is required")
        return v

class TrackingRules(BaseModel):
    visitor_id_key: str
    excluded_key: str
    tracked_cta_urls: list[str]
    direct_referrer: str = "direct"

class AuthRules(BaseModel):
    token_algorithm: str = "HS256"
    token_ttl_minutes: int = Field(default=60 * 24, ge=1)

class OpsRules(BaseModel):
    data_dir_required: bool
    required_env: list[str]

class Rules(BaseModel):
    project: ProjectRules
    analytics: AnalyticsRules
    crawlers: CrawlerRules
    tracking: TrackingRules
    auth: AuthRules
    ops: OpsRules

    @model_validator(mode="after")
    def required_sections_known(self) -> "Rules":
        unknown = [s for s in self.project.required_sections if s not in type(self).model_fields]
        if unknown:
            raise ValueError(f"unknown required sections: {unknown}")
        return self
