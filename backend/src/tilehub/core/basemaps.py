"""Default basemap resolution.

A basemaps config maps providers to named basemaps::

    {"carto": {"positron": {...}, "voyager": {..., "default": true}}}

The default of a config is the entry flagged ``"default": true``, else the
first basemap of the first provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tilehub.core.config import settings

if TYPE_CHECKING:
    from tilehub.core.models import User


def default_basemap_of(basemaps: dict[str, Any] | None) -> dict[str, Any] | None:
    """Pick the default basemap from a config, or None if it holds none."""
    if not basemaps:
        return None

    first: dict[str, Any] | None = None
    for provider in basemaps.values():
        if not isinstance(provider, dict):
            continue
        for basemap in provider.values():
            if not isinstance(basemap, dict):
                continue
            if basemap.get("default"):
                return basemap
            if first is None:
                first = basemap
    return first


def default_basemap_for(user: User) -> dict[str, Any]:
    """User config first, then the organization's, then the platform fallback."""
    basemap = default_basemap_of(user.basemaps)
    if basemap is None and user.organization is not None:
        basemap = default_basemap_of(user.organization.basemaps)
    if basemap is None:
        basemap = dict(settings.default_basemap)
    return basemap
