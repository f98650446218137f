from datetime import datetime
from typing import Optional, Sequence, Tuple
from sqlmodel import select, or_, and_

from gallery.db.repositories.base import BaseRepository
from gallery.db.models.videos import VideoRecord, STATUS_READY, STATUS_PENDING_DELETE

# (created_at, id) du dernier élément de la page précédente
Keyset = Tuple[datetime, str]


class VideoRepository(BaseRepository[VideoRecord]):
    """CRUD Vidéos + requêtes spécifiques."""
    model = VideoRecord

    def get_by_public_id(self, public_id: str) -> Optional[VideoRecord]:
        return self.find_one(public_id=public_id)

    def list_recent(self, *, limit: Optional[int] = None, after: Optional[Keyset] = None) -> Sequence[VideoRecord]:
        """
        Vidéos visibles, les plus récentes d'abord (id décroissant pour départager).
        `after` : keyset de pagination, exclusif.
        """
        statement = select(self.model).where(self.model.status == STATUS_READY)
        if after is not None:
            created_at, id_ = after
            statement = statement.where(
                or_(
                    self.model.created_at < created_at,
                    and_(self.model.created_at == created_at, self.model.id < id_),
                )
            )
        statement = statement.order_by(self.model.created_at.desc(), self.model.id.desc())
        if limit is not None:
            statement = statement.limit(limit)
        return self.session.exec(statement).all()

    def list_pending_delete(self) -> Sequence[VideoRecord]:
        return self.session.exec(
            select(self.model)
            .where(self.model.status == STATUS_PENDING_DELETE)
            .order_by(self.model.updated_at)
        ).all()
