"""Image URLs for the asset keys referenced by image-choice questions."""

from __future__ import annotations

_PEXELS = "https://images.pexels.com/photos/{id}/pexels-photo-{id}.jpeg?auto=compress&cs=tinysrgb&w=400"

IMAGE_ASSETS: dict[str, str] = {
    # Symbols
    "key": _PEXELS.format(id=1232594),
    "crown": _PEXELS.format(id=8828678),
    "compass": _PEXELS.format(id=1906794),
    "flame": _PEXELS.format(id=266487),
    "heart": _PEXELS.format(id=1557652),
    "spark": _PEXELS.format(id=1363876),
    # House styles
    "minimalist_mansion": _PEXELS.format(id=1396122),
    "rustic_cabin": _PEXELS.format(id=1029599),
    "grand_estate": _PEXELS.format(id=1396132),
    "vibrant_loft": _PEXELS.format(id=1571460),
}

FALLBACK_IMAGE_URL: str = _PEXELS.format(id=1029599)


def image_url(asset_key: str) -> str:
    return IMAGE_ASSETS.get(asset_key, FALLBACK_IMAGE_URL)
