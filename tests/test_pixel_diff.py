"""Tests for the thresholded pixel diff."""

from pathlib import Path

from PIL import Image

from conftest import make_png
from sitediff.comparator.pixel_diff import diff_images


class TestDiffImages:
    def test_identical_images(self):
        png = make_png()
        result = diff_images(png, png)
        assert result.diff_pixels == 0
        assert not result.size_mismatch
        assert result.diff_ratio == 0.0

    def test_counts_changed_pixels(self):
        result = diff_images(make_png(changed_pixels=0), make_png(changed_pixels=25))
        assert result.diff_pixels == 25
        assert result.total_pixels == 40 * 30

    def test_ignores_changes_below_threshold(self):
        a = make_png(color=(255, 255, 255))
        b = make_png(color=(250, 250, 250))
        assert diff_images(a, b, threshold=0.1).diff_pixels == 0

    def test_zero_threshold_counts_any_change(self):
        a = make_png(color=(255, 255, 255))
        b = make_png(color=(254, 255, 255))
        assert diff_images(a, b, threshold=0.0).diff_pixels == 40 * 30

    def test_single_channel_change_counts(self):
        a = make_png(color=(255, 255, 255))
        b = make_png(color=(255, 255, 0))
        assert diff_images(a, b).diff_pixels == 40 * 30

    def test_size_mismatch_counts_padding(self):
        a = make_png(width=40, height=30)
        b = make_png(width=40, height=40)
        result = diff_images(a, b)
        assert result.size_mismatch
        assert (result.width, result.height) == (40, 40)
        assert result.diff_pixels == 40 * 10

    def test_accepts_paths(self, tmp_path: Path):
        path = tmp_path / "a.png"
        path.write_bytes(make_png(changed_pixels=3))
        assert diff_images(path, make_png()).diff_pixels == 3

    def test_diff_image_highlights_changes_in_red(self):
        result = diff_images(make_png(), make_png(changed_pixels=1))
        assert isinstance(result.diff_image, Image.Image)
        assert result.diff_image.getpixel((0, 0)) == (255, 0, 0)
        assert result.diff_image.getpixel((10, 10)) != (255, 0, 0)
