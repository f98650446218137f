"""Variantes « réseaux sociaux » d'une image uploadée (recadrage fill, gravité auto)."""

import re
from pathlib import Path
from typing import Dict

from gallery.client.api import GalleryClient
from gallery.media.urls import SOCIAL_FORMATS, social_image_url


def social_variants(public_id: str, *, cloud_name: str) -> Dict[str, str]:
    return {name: social_image_url(public_id, name, cloud_name=cloud_name) for name in SOCIAL_FORMATS}


def download_filename(format_name: str) -> str:
    # "Instagram Square (1:1)" -> "instagram_square_1_1.png"
    return re.sub(r"[^a-z0-9]+", "_", format_name.lower()).strip("_") + ".png"


def download_social_image(
    client: GalleryClient,
    public_id: str,
    format_name: str,
    dest_dir: Path,
    *,
    cloud_name: str,
) -> Path:
    if format_name not in SOCIAL_FORMATS:
        raise KeyError(f"Unknown social format: {format_name}")
    url = social_image_url(public_id, format_name, cloud_name=cloud_name)
    target = Path(dest_dir) / download_filename(format_name)
    target.write_bytes(client.fetch_bytes(url))
    return target
