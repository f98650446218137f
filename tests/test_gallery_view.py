import httpx
import pytest

from gallery.client.api import GalleryClient
from gallery.client.gallery import (
    THEME_STYLES,
    GalleryView,
    compression_percentage,
    format_duration,
    format_size,
    theme_styles,
    video_filename,
)
from gallery.client.share import download_filename, download_social_image, social_variants
from gallery.media.urls import attachment_url

VIDEOS = [
    {
        "id": f"id{i}",
        "title": f"Clip {i}",
        "description": None,
        "publicId": f"video-uploads/clip{i}",
        "originalSize": 1000,
        "compressedSize": 250,
        "duration": 125,
        "createdAt": "2025-01-01T12:00:00",
    }
    for i in range(3)
]


class Routes:
    """MockTransport minimal : compte les appels par (méthode, chemin)."""

    def __init__(self, videos=VIDEOS, *, asset=b"MP4DATA", asset_status=200, delete_status=200, list_status=200):
        self.videos = videos
        self.asset = asset
        self.asset_status = asset_status
        self.delete_status = delete_status
        self.list_status = list_status
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        if request.url.host == "res.cloudinary.com":
            return httpx.Response(self.asset_status, content=self.asset)
        if request.method == "GET" and request.url.path == "/api/videos":
            return httpx.Response(self.list_status, json=self.videos)
        if request.method == "DELETE" and request.url.path == "/api/videos":
            return httpx.Response(self.delete_status, json={"success": True})
        return httpx.Response(404)


def _view(routes, **kwargs) -> GalleryView:
    client = GalleryClient("http://testserver", cloud_name="demo", transport=httpx.MockTransport(routes))
    return GalleryView(client, **kwargs)


@pytest.mark.parametrize(
    "original,compressed,expected",
    [(1000, 250, 75), (1000, 1000, 0), (1000, 1200, -20), (3, 1, 67), (0, 250, None)],
)
def test_compression_percentage(original, compressed, expected):
    assert compression_percentage(original, compressed) == expected


@pytest.mark.parametrize(
    "seconds,expected",
    [(125, "2:05"), (0, "0:00"), (59.4, "0:59"), (59.6, "1:00"), (3600, "60:00")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize(
    "size,expected",
    [(0, "0 B"), (250, "250 B"), (1500, "1.5 kB"), (73_400_320, "73.4 MB"), (2_000_000_000, "2 GB")],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_theme_styles():
    assert theme_styles("dracula") == THEME_STYLES["dark"]
    assert theme_styles("system", system_theme="ocean") == THEME_STYLES["ocean"]
    assert theme_styles("unknown") == THEME_STYLES["default"]
    assert theme_styles(None) == THEME_STYLES["default"]


def test_load_builds_cards_once():
    routes = Routes()
    view = _view(routes)
    cards = view.load()
    view.load()

    assert routes.calls.count(("GET", "/api/videos")) == 1
    assert len(cards) == 3
    card = cards[0]
    assert card.saved_label == "75%"
    assert card.duration_label == "2:05"
    assert card.original_size_label == "1 kB"
    assert "res.cloudinary.com/demo/video/upload" in card.thumbnail_url
    assert "video-uploads/clip0.jpg" in card.thumbnail_url
    assert "e_preview:duration_15" in card.preview_url


def test_load_failure_sets_error():
    view = _view(Routes(list_status=500))
    assert view.load() == []
    assert view.error == "Failed to fetch videos"


def test_saved_label_for_unknown_original_size():
    videos = [dict(VIDEOS[0], originalSize=0)]
    assert _view(Routes(videos)).load()[0].saved_label == "n/a"


def test_download_with_handler_uses_attachment_url():
    started = []
    view = _view(Routes(), on_download=lambda url, title: started.append((url, title)))
    card = view.load()[0]

    assert view.download(card, dest_dir=".") is None
    url, title = started[0]
    assert title == "Clip 0"
    assert "fl_attachment=Clip%200.mp4" in url
    assert view.message == "Download started: Clip 0"


def test_download_writes_file(tmp_path):
    view = _view(Routes(asset=b"VIDEO"))
    card = view.load()[0]
    target = view.download(card, dest_dir=tmp_path)
    assert target == tmp_path / "Clip 0.mp4"
    assert target.read_bytes() == b"VIDEO"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["Clip 0.mp4"]


def test_download_failure_opens_new_tab(tmp_path):
    opened = []
    view = _view(Routes(asset_status=500), opener=opened.append)
    card = view.load()[0]
    assert view.download(card, dest_dir=tmp_path) is None
    assert opened == [card.full_url]
    assert list(tmp_path.iterdir()) == []


def test_delete_requires_confirmation():
    routes = Routes()
    view = _view(routes, confirm=lambda message: False)
    card = view.load()[0]
    assert view.delete(card) is False
    assert ("DELETE", "/api/videos") not in routes.calls
    assert len(view.cards) == 3


def test_delete_removes_only_that_card():
    routes = Routes()
    view = _view(routes, confirm=lambda message: True)
    cards = view.load()
    assert view.delete(cards[1]) is True
    assert [c.video.public_id for c in view.cards] == ["video-uploads/clip0", "video-uploads/clip2"]
    assert view.message == "Video deleted"
    assert routes.calls.count(("GET", "/api/videos")) == 1


def test_delete_failure_keeps_cards():
    view = _view(Routes(delete_status=502), confirm=lambda message: True)
    cards = view.load()
    assert view.delete(cards[0]) is False
    assert view.message == "Failed to delete video"
    assert len(view.cards) == 3


def test_attachment_url_is_not_doubled():
    url = "https://res.cloudinary.com/demo/video/upload/x.mp4?fl_attachment=x.mp4"
    assert attachment_url(url, "x") == url


def test_social_variants_and_download(tmp_path):
    variants = social_variants("image-uploads/xyz", cloud_name="demo")
    assert len(variants) == 5
    square = variants["Instagram Square (1:1)"]
    assert "w_1080" in square and "h_1080" in square and "c_fill" in square and "g_auto" in square

    assert download_filename("Facebook Cover (205:78)") == "facebook_cover_205_78.png"

    client = GalleryClient("http://testserver", transport=httpx.MockTransport(Routes(asset=b"PNG")))
    target = download_social_image(client, "image-uploads/xyz", "Twitter Post (16:9)", tmp_path, cloud_name="demo")
    assert target.name == "twitter_post_16_9.png"
    assert target.read_bytes() == b"PNG"


def test_view_requires_cloud_name():
    client = GalleryClient("http://testserver", transport=httpx.MockTransport(Routes()))
    with pytest.raises(ValueError):
        GalleryView(client)


@pytest.mark.parametrize(
    "title,expected",
    [("Clip 0", "Clip 0.mp4"), ("AC/DC live", "AC_DC live.mp4"), ("../escaped", "_escaped.mp4"), ("..", "video.mp4")],
)
def test_video_filename_stays_a_basename(title, expected):
    assert video_filename(title) == expected


@pytest.mark.parametrize("title", ["../escaped", "AC/DC live", "..\\..\\win"])
def test_download_stays_inside_dest_dir(tmp_path, title):
    dest = tmp_path / "downloads"
    dest.mkdir()
    opened = []
    view = _view(Routes([dict(VIDEOS[0], title=title)], asset=b"VIDEO"), opener=opened.append)
    card = view.load()[0]

    target = view.download(card, dest_dir=dest)
    assert target is not None
    assert target.parent == dest
    assert target.read_bytes() == b"VIDEO"
    assert opened == []
    assert [p.name for p in tmp_path.iterdir()] == ["downloads"]


def test_download_into_missing_folder_opens_new_tab(tmp_path):
    opened = []
    view = _view(Routes(asset=b"VIDEO"), opener=opened.append)
    card = view.load()[0]
    assert view.download(card, dest_dir=tmp_path / "missing") is None
    assert opened == [card.full_url]
