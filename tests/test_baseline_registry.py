"""Tests for the visual baseline registry."""

import hashlib
import json
from pathlib import Path

import pytest

from conftest import make_png, make_snapshot, make_task
from sitediff.comparator.baseline_registry import VisualBaselineRegistryManager


@pytest.fixture
def manager(tmp_path: Path) -> VisualBaselineRegistryManager:
    return VisualBaselineRegistryManager(tmp_path / "baselines", "https://example.com")


class TestVisualBaselineRegistryManager:
    def test_load_creates_empty_registry(self, manager):
        registry = manager.load()
        assert registry.base_url == "https://example.com"
        assert registry.baselines == {}

    def test_store_and_lookup(self, manager, desktop):
        registry = manager.load()
        snapshot = make_snapshot(make_task("/communities/", desktop), make_png(changed_pixels=4))
        entry = manager.store_baseline(registry, snapshot, "run_1")

        assert entry.image_path == str(Path("images") / "communities" / "desktop.png")
        assert entry.image_hash == hashlib.sha256(snapshot.image_bytes).hexdigest()
        assert entry.run_id == "run_1"
        assert manager.get_baseline(registry, "communities", "desktop") == entry
        assert manager.get_baseline_image_path(entry).read_bytes() == snapshot.image_bytes

    def test_lookup_unknown_key(self, manager):
        assert manager.get_baseline(manager.load(), "homepage", "desktop") is None

    def test_missing_image_treated_as_no_baseline(self, manager, desktop):
        registry = manager.load()
        entry = manager.store_baseline(registry, make_snapshot(make_task("/", desktop)), "run_1")
        manager.get_baseline_image_path(entry).unlink()
        assert manager.get_baseline(registry, "homepage", "desktop") is None

    def test_save_and_reload(self, manager, desktop):
        registry = manager.load()
        manager.store_baseline(registry, make_snapshot(make_task("/", desktop)), "run_1")
        manager.save(registry)

        reloaded = manager.load()
        assert "homepage__desktop" in reloaded.baselines
        assert reloaded.last_updated

    def test_corrupt_registry_starts_fresh(self, manager):
        manager.registry_path.parent.mkdir(parents=True)
        manager.registry_path.write_text("{not json")
        assert manager.load().baselines == {}

    def test_reset_removes_everything(self, manager, desktop):
        registry = manager.load()
        manager.store_baseline(registry, make_snapshot(make_task("/", desktop)), "run_1")
        manager.save(registry)

        manager.reset()

        assert not manager.registry_path.exists()
        assert not (manager.baselines_dir / "images").exists()
        assert manager.load().baselines == {}

    def test_registry_file_is_json(self, manager, desktop):
        registry = manager.load()
        manager.store_baseline(registry, make_snapshot(make_task("/", desktop)), "run_1")
        manager.save(registry)
        data = json.loads(manager.registry_path.read_text())
        assert data["baselines"]["homepage__desktop"]["viewport_width"] == 1920
