from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from gallery.api.v1.dependencies import get_media_client
from gallery.core.config import Settings
from gallery.core.errors import UpstreamFailure
from gallery.db.models.videos import VideoRecord
from gallery.db.repositories.videos import VideoRepository
from gallery.main import create_app
from gallery.media.cloudinary_client import UploadResult
from gallery.security.tokens import create_session_token

# ftyp "isom" minimal : reconnu comme video/mp4 par filetype
MP4_HEADER = (
    b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isomiso2"
    b"\x00\x00\x00\x08free"
)
PNG_HEADER = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


class FakeMediaClient:
    """Cloudinary en mémoire : enregistre les appels, pannes à la demande."""

    def __init__(self):
        self.assets: Dict[str, str] = {}  # public_id -> resource_type
        self.uploads: List[Tuple[str, int, str]] = []
        self.destroyed: List[str] = []
        self.fail_upload = False
        self.fail_destroy = False
        self.next_duration: Optional[float] = 12.5
        self.next_bytes = 250
        self.next_public_id: Optional[str] = None
        self._counter = 0

    @property
    def calls(self) -> int:
        return len(self.uploads) + len(self.destroyed)

    async def _upload(self, data: bytes, folder: str, resource_type: str) -> UploadResult:
        if self.fail_upload:
            raise UpstreamFailure("Media upload failed: boom")
        self._counter += 1
        public_id = self.next_public_id or f"{folder}/asset{self._counter}"
        self.assets[public_id] = resource_type
        self.uploads.append((public_id, len(data), resource_type))
        return UploadResult(
            public_id=public_id,
            bytes=self.next_bytes,
            duration=self.next_duration if resource_type == "video" else None,
            resource_type=resource_type,
        )

    async def upload_video(self, data: bytes, *, folder: str) -> UploadResult:
        return await self._upload(data, folder, "video")

    async def upload_image(self, data: bytes, *, folder: str) -> UploadResult:
        return await self._upload(data, folder, "image")

    async def destroy(self, public_id: str, *, resource_type: str = "video") -> bool:
        if self.fail_destroy:
            raise UpstreamFailure("Media delete failed: boom")
        self.destroyed.append(public_id)
        return self.assets.pop(public_id, None) is not None


class Store:
    def __init__(self, db):
        self.db = db

    def add(self, **fields) -> VideoRecord:
        fields.setdefault("title", "Clip")
        fields.setdefault("original_size", 1000)
        fields.setdefault("compressed_size", 250)
        with self.db.session() as session:
            video = VideoRepository(session).create(**fields)
            session.expunge(video)
        return video

    def get(self, public_id: str) -> Optional[VideoRecord]:
        with self.db.session() as session:
            video = VideoRepository(session).get_by_public_id(public_id)
            if video is not None:
                session.expunge(video)
        return video

    def count(self) -> int:
        with self.db.session() as session:
            return len(session.exec(select(VideoRecord)).all())


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        ENV="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key",
        CLOUDINARY_API_SECRET="secret",
        AUTH_JWT_SECRET="test-secret",
        AUTH_JWT_ISSUER="test-idp",
        MAX_VIDEO_UPLOAD_MB=1,
        MAX_IMAGE_UPLOAD_MB=1,
    )


@pytest.fixture
def media() -> FakeMediaClient:
    return FakeMediaClient()


@pytest.fixture
def app(settings, media):
    app = create_app(settings)
    app.dependency_overrides[get_media_client] = lambda: media
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def token(settings) -> str:
    return create_session_token(user_id="user_123", settings=settings.jwt_settings)


@pytest.fixture
def auth_headers(token) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def store(app, client):
    """Accès direct à la base, une session courte par appel (client a déjà ouvert la base)."""
    return Store(app.state.db)


@pytest.fixture
def mp4_bytes() -> bytes:
    return MP4_HEADER + b"\x00" * 2048


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_HEADER + b"\x00" * 512


@pytest.fixture
def post_video(client):
    def _post(data: bytes, headers=None, **form):
        fields = {"title": "My clip", "description": "A short clip", "originalSize": "1000"}
        fields.update(form)
        return client.post(
            "/api/video-upload",
            headers=headers or {},
            files={"file": ("clip.mp4", data, "video/mp4")},
            data={k: v for k, v in fields.items() if v is not None},
        )
    return _post
