"""Thresholded per-pixel diff with Pillow."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageChops


@dataclass
class PixelDiff:
    width: int
    height: int
    diff_pixels: int
    size_mismatch: bool = False
    diff_image: Image.Image | None = None

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    @property
    def diff_ratio(self) -> float:
        return self.diff_pixels / self.total_pixels if self.total_pixels else 0.0


def _load_rgb(source: bytes | Path) -> Image.Image:
    if isinstance(source, (bytes, bytearray)):
        img = Image.open(io.BytesIO(source))
    else:
        img = Image.open(source)
    img.load()
    return img.convert("RGB")


def _pad_to(img: Image.Image, size: tuple[int, int]) -> Image.Image:
    if img.size == size:
        return img
    padded = Image.new("RGB", size, (255, 255, 255))
    padded.paste(img, (0, 0))
    return padded


def _count_above(channel_max: Image.Image, cutoff: int) -> int:
    return sum(channel_max.histogram()[cutoff + 1:])


def diff_images(a: bytes | Path, b: bytes | Path, threshold: float = 0.1) -> PixelDiff:
    """Count pixels whose largest channel difference exceeds ``threshold * 255``.

    Images of different sizes are padded to the larger size and every pixel
    outside their shared area counts as different.
    """
    img_a = _load_rgb(a)
    img_b = _load_rgb(b)
    size_mismatch = img_a.size != img_b.size
    shared_w = min(img_a.width, img_b.width)
    shared_h = min(img_a.height, img_b.height)
    width = max(img_a.width, img_b.width)
    height = max(img_a.height, img_b.height)
    img_a = _pad_to(img_a, (width, height))
    img_b = _pad_to(img_b, (width, height))

    diff = ImageChops.difference(img_a, img_b)
    r, g, b_ch = diff.split()
    channel_max = ImageChops.lighter(ImageChops.lighter(r, g), b_ch)
    cutoff = int(threshold * 255)

    if size_mismatch:
        outside = width * height - shared_w * shared_h
        diff_pixels = _count_above(channel_max.crop((0, 0, shared_w, shared_h)), cutoff) + outside
    else:
        diff_pixels = _count_above(channel_max, cutoff)

    mask = channel_max.point(lambda v: 255 if v > cutoff else 0)
    if size_mismatch:
        # padding counts as different even where both pads are white
        outside_mask = Image.new("L", (width, height), 255)
        outside_mask.paste(0, (0, 0, shared_w, shared_h))
        mask = ImageChops.lighter(mask, outside_mask)

    return PixelDiff(
        width=width,
        height=height,
        diff_pixels=diff_pixels,
        size_mismatch=size_mismatch,
        diff_image=_highlight(img_b, mask),
    )


def _highlight(base: Image.Image, mask: Image.Image) -> Image.Image:
    """Fade the image and paint differing pixels red."""
    faded = Image.blend(base, Image.new("RGB", base.size, (255, 255, 255)), 0.7)
    red = Image.new("RGB", base.size, (255, 0, 0))
    return Image.composite(red, faded, mask)
