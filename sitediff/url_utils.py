"""Shared URL utilities: build environment URLs and derive stable page IDs."""

from __future__ import annotations


def page_id_from_path(path: str) -> str:
    """Filesystem-safe identifier for a site-relative path.

    ``/communities/eagle/`` becomes ``communities_eagle``; the root maps to
    ``homepage``.
    """
    return path.replace("/", "_").strip("_") or "homepage"


def build_url(base_url: str, path: str) -> str:
    """Join an environment base URL and a site-relative path."""
    return f"{base_url.rstrip('/')}{path}"
