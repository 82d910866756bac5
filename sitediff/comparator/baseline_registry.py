"""Visual baseline registry: stores and manages screenshot baselines for perceptual comparison."""

from __future__ import annotations

import json
import logging
import shutil
import time
from pathlib import Path

from sitediff.models.capture import Snapshot
from sitediff.models.visual_baseline import BaselineEntry, VisualBaselineRegistry

logger = logging.getLogger(__name__)


class VisualBaselineRegistryManager:
    """Manages visual baseline images and their JSON registry."""

    def __init__(self, baselines_dir: Path, base_url: str):
        self.baselines_dir = baselines_dir
        self.registry_path = baselines_dir / "registry.json"
        self.base_url = base_url

    def load(self) -> VisualBaselineRegistry:
        """Load registry from disk, or create a new one."""
        if self.registry_path.exists():
            try:
                with open(self.registry_path) as f:
                    data = json.load(f)
                return VisualBaselineRegistry(**data)
            except Exception as e:
                logger.warning("Failed to load visual baseline registry: %s. Creating new.", e)
        return VisualBaselineRegistry(base_url=self.base_url)

    def save(self, registry: VisualBaselineRegistry) -> None:
        """Persist registry to disk."""
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        registry.last_updated = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        with open(self.registry_path, "w") as f:
            json.dump(registry.model_dump(), f, indent=2)
        logger.debug("Saved visual baseline registry to %s", self.registry_path)

    def reset(self) -> None:
        """Delete the registry and every stored baseline image."""
        if self.registry_path.exists():
            self.registry_path.unlink()
        images = self.baselines_dir / "images"
        if images.exists():
            shutil.rmtree(images)
        logger.info("Visual baselines reset")

    def _baseline_key(self, page_id: str, viewport_name: str) -> str:
        return f"{page_id}__{viewport_name}"

    def _image_path(self, page_id: str, viewport_name: str) -> Path:
        return self.baselines_dir / "images" / page_id / f"{viewport_name}.png"

    def get_baseline(self, registry: VisualBaselineRegistry, page_id: str, viewport_name: str) -> BaselineEntry | None:
        """Look up an existing baseline for a page+viewport combination."""
        key = self._baseline_key(page_id, viewport_name)
        entry = registry.baselines.get(key)
        if entry is None:
            return None
        abs_path = self.baselines_dir / entry.image_path
        if not abs_path.exists():
            logger.warning("Baseline image missing for %s: %s", key, abs_path)
            return None
        return entry

    def get_baseline_image_path(self, entry: BaselineEntry) -> Path:
        """Return the absolute path to a baseline image."""
        return self.baselines_dir / entry.image_path

    def store_baseline(
        self,
        registry: VisualBaselineRegistry,
        snapshot: Snapshot,
        run_id: str,
    ) -> BaselineEntry:
        """Write a snapshot into the baselines directory and register it."""
        task = snapshot.task
        dest = self._image_path(task.page.page_id, task.viewport.name)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(snapshot.image_bytes)

        entry = BaselineEntry(
            page_id=task.page.page_id,
            viewport_name=task.viewport.name,
            viewport_width=task.viewport.width,
            viewport_height=task.viewport.height,
            environment=task.environment.name,
            # Relative path from baselines_dir for portability
            image_path=str(dest.relative_to(self.baselines_dir)),
            captured_at=snapshot.captured_at,
            run_id=run_id,
            image_hash=snapshot.sha256,
        )

        key = self._baseline_key(task.page.page_id, task.viewport.name)
        registry.baselines[key] = entry
        logger.info("Stored baseline for %s (%dx%d)", key, task.viewport.width, task.viewport.height)
        return entry
