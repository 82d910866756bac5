"""Capture data structures: what to capture and what came back."""

from __future__ import annotations

import hashlib
import io
from typing import Literal

from PIL import Image
from pydantic import BaseModel, ConfigDict

from sitediff.models.config import EnvironmentConfig, ViewportConfig
from sitediff.url_utils import build_url, page_id_from_path


class PageTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str

    @property
    def page_id(self) -> str:
        return page_id_from_path(self.path)


class CaptureTask(BaseModel):
    """One (page, viewport, environment) triple."""

    model_config = ConfigDict(frozen=True)

    page: PageTarget
    viewport: ViewportConfig
    environment: EnvironmentConfig

    @property
    def url(self) -> str:
        return build_url(self.environment.base_url, self.page.path)

    @property
    def pair_key(self) -> tuple[str, str]:
        """Identity shared by the two tasks that get compared."""
        return (self.page.page_id, self.viewport.name)

    @property
    def key(self) -> str:
        return f"{self.viewport.name}-{self.page.page_id}-{self.environment.name}"


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    task: CaptureTask
    image_bytes: bytes
    captured_at: str  # ISO timestamp

    @property
    def size(self) -> tuple[int, int]:
        with Image.open(io.BytesIO(self.image_bytes)) as img:
            return img.size

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.image_bytes).hexdigest()


class CaptureError(BaseModel):
    task: CaptureTask
    kind: Literal["navigation_timeout", "capture_failure"]
    message: str = ""
    occurred_at: str = ""
