from typing import Dict, NamedTuple
from urllib.parse import quote

from cloudinary.utils import cloudinary_url

PREVIEW_EFFECT = "e_preview:duration_15:max_seg_9:min_seg_dur_1"


class SocialFormat(NamedTuple):
    width: int
    height: int
    aspect_ratio: str


SOCIAL_FORMATS: Dict[str, SocialFormat] = {
    "Instagram Square (1:1)": SocialFormat(1080, 1080, "1:1"),
    "Instagram Portrait (4:5)": SocialFormat(1080, 1350, "4:5"),
    "Twitter Post (16:9)": SocialFormat(1200, 675, "16:9"),
    "Twitter Header (3:1)": SocialFormat(1500, 500, "3:1"),
    "Facebook Cover (205:78)": SocialFormat(820, 312, "205:78"),
}


def _url(public_id: str, *, cloud_name: str, **options) -> str:
    url, _ = cloudinary_url(public_id, cloud_name=cloud_name, secure=True, **options)
    return url


def video_thumbnail_url(public_id: str, *, cloud_name: str) -> str:
    return _url(
        public_id,
        cloud_name=cloud_name,
        resource_type="video",
        width=400,
        height=225,
        crop="fill",
        gravity="auto",
        format="jpg",
        quality="auto",
    )


def video_preview_url(public_id: str, *, cloud_name: str) -> str:
    return _url(
        public_id,
        cloud_name=cloud_name,
        resource_type="video",
        width=400,
        height=225,
        crop="fill",
        raw_transformation=PREVIEW_EFFECT,
    )


def video_full_url(public_id: str, *, cloud_name: str) -> str:
    return _url(public_id, cloud_name=cloud_name, resource_type="video", width=1920, height=1080, crop="limit")


def attachment_url(url: str, title: str) -> str:
    """URL qui force le téléchargement (flag fl_attachment) sous le nom `<title>.mp4`."""
    if "fl_attachment" in url:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}fl_attachment={quote(title)}.mp4"


def social_image_url(public_id: str, format_name: str, *, cloud_name: str) -> str:
    fmt = SOCIAL_FORMATS[format_name]
    return _url(
        public_id,
        cloud_name=cloud_name,
        width=fmt.width,
        height=fmt.height,
        crop="fill",
        gravity="auto",
        aspect_ratio=fmt.aspect_ratio,
    )
