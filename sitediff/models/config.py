"""Configuration models for the visual comparison workflow."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sitediff.url_utils import page_id_from_path

# Viewport and environment names are joined with "-" into file names
_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")

# Suffixes of the result record and diff image file names
RESERVED_ENVIRONMENT_NAMES = ("result", "diff")


def _check_name(v: str) -> str:
    if not _NAME_RE.match(v):
        raise ValueError(f"Name may only contain letters, digits and underscores, got '{v}'")
    return v


class ViewportConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "desktop"
    width: int = Field(default=1920, gt=0)
    height: int = Field(default=1080, gt=0)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_name(v)


class EnvironmentConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    base_url: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        if v in RESERVED_ENVIRONMENT_NAMES:
            raise ValueError(f"Environment name '{v}' is reserved")
        return _check_name(v)

    @field_validator("base_url")
    @classmethod
    def check_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")


class NormalizationRule(BaseModel):
    """A DOM tweak applied before capture so dynamic UI doesn't leak into screenshots."""

    model_config = ConfigDict(frozen=True)

    selector: str
    action: Literal["hide", "remove", "fill_required"] = "hide"
    value: str = "test"  # placeholder typed into required fields
    description: str = ""


def _default_environments() -> list[EnvironmentConfig]:
    return [
        EnvironmentConfig(name="production", base_url="https://revelcommunities.com"),
        EnvironmentConfig(name="development", base_url="https://dev-revelcommunities.pantheonsite.io"),
    ]


def _default_viewports() -> list[ViewportConfig]:
    return [
        ViewportConfig(name="desktop", width=1920, height=1080),
        ViewportConfig(name="tablet", width=768, height=1024),
        ViewportConfig(name="mobile", width=375, height=667),
    ]


def _default_rules() -> list[NormalizationRule]:
    return [
        NormalizationRule(
            selector=".cky-consent-container",
            action="hide",
            description="Cookie consent banner",
        ),
        NormalizationRule(
            selector="form",
            action="fill_required",
            value="test",
            description="Required form fields",
        ),
    ]


class SiteDiffConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Environments; the first two are compared unless overridden
    environments: list[EnvironmentConfig] = Field(default_factory=_default_environments)
    reference_environment: str = ""
    candidate_environment: str = ""

    # Target matrix
    pages: list[str] = Field(default_factory=lambda: ["/"])
    viewports: list[ViewportConfig] = Field(default_factory=_default_viewports)

    # Capture
    browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    navigation_timeout_ms: int = Field(default=30000, gt=0)
    settle_delay_ms: int = Field(default=2000, ge=0)
    normalization_rules: list[NormalizationRule] = Field(default_factory=_default_rules)
    max_parallel_contexts: int = Field(default=3, gt=0)
    user_agent: str | None = None

    # Comparison
    strategy: Literal["bytes", "perceptual"] = "bytes"
    perceptual_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    max_diff_pixels: int = Field(default=1000, ge=0)
    baselines_dir: str = ".sitediff/visual_baselines"

    # Output
    output_dir: str = "test-results/screenshots"
    file_prefix: str = ""
    report_name: str = "multi-page-comparison-report"
    report_formats: list[str] = Field(default_factory=lambda: ["html", "json"])
    embed_images: bool = True

    @field_validator("viewports", mode="before")
    @classmethod
    def accept_viewport_mapping(cls, v):
        # {"desktop": {"width": 1920, "height": 1080}, ...}
        if isinstance(v, dict):
            return [{"name": name, **dims} for name, dims in v.items()]
        return v

    @field_validator("pages")
    @classmethod
    def check_pages(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one page path is required")
        seen: dict[str, str] = {}
        for path in v:
            if not isinstance(path, str) or not path.startswith("/"):
                raise ValueError(f"Page path must start with '/': {path!r}")
            page_id = page_id_from_path(path)
            if seen.get(page_id) == path:
                raise ValueError(f"Duplicate page path: '{path}'")
            if page_id in seen:
                raise ValueError(
                    f"Paths '{seen[page_id]}' and '{path}' map to the same page id '{page_id}'"
                )
            seen[page_id] = path
        return v

    @model_validator(mode="after")
    def check_names(self) -> "SiteDiffConfig":
        env_names = [e.name for e in self.environments]
        if len(env_names) < 2:
            raise ValueError("At least two environments are required")
        if len(set(env_names)) != len(env_names):
            raise ValueError(f"Duplicate environment names: {env_names}")
        for name in (self.reference_environment, self.candidate_environment):
            if name and name not in env_names:
                raise ValueError(f"Unknown environment '{name}'")
        vp_names = [vp.name for vp in self.viewports]
        if not vp_names:
            raise ValueError("At least one viewport is required")
        if len(set(vp_names)) != len(vp_names):
            raise ValueError(f"Duplicate viewport names: {vp_names}")
        return self

    def environment(self, name: str) -> EnvironmentConfig:
        for env in self.environments:
            if env.name == name:
                return env
        raise ValueError(f"Unknown environment '{name}'")

    @classmethod
    def load(cls, path: str | Path) -> "SiteDiffConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
