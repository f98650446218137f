"""
➡️ But : Configurer la base et gérer les sessions de base de données.

Database : handle explicite construit par create_app (ou un script) :
  - connect() : crée l'engine et les tables à partir des modèles SQLModel.
  - close()   : libère le pool de connexions.
  - session() : ouvre une Session.

get_session() : dépendance FastAPI qui ouvre une session sur le handle de l'app,
la fournit aux routes, puis la ferme proprement.

🔹 Avantages :

Un seul endroit pour gérer les connexions DB, sans singleton global.

Réutilisable par injection (Depends(get_session)).
"""

from typing import Any, Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

# Import all models for creating all tables
from gallery.db.models.videos import VideoRecord  # noqa: F401


class Database:
    def __init__(self, url: str, *, echo: bool = False):
        assert url, "DATABASE_URL must be set"
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    def _build_engine(self) -> Engine:
        is_sqlite = self.url.startswith("sqlite:")
        in_memory = is_sqlite and (self.url in ("sqlite://", "sqlite:///:memory:"))

        connect_args: Dict[str, Any] = {}
        kwargs: Dict[str, Any] = {}
        if is_sqlite:
            # Requis pour SQLite quand utilisé dans un app serveur (multi-threads)
            connect_args["check_same_thread"] = False
        if in_memory:
            # une seule connexion partagée, sinon chaque session voit une base vide
            kwargs["poolclass"] = StaticPool

        return create_engine(
            self.url,
            echo=self.echo,
            connect_args=connect_args,
            pool_pre_ping=not is_sqlite,  # ping utile pour Postgres/MySQL ; inutile pour SQLite
            **kwargs,
        )

    def connect(self) -> None:
        """
        Crée l'engine et les tables si elles n'existent pas (usage dev/demo).
        En prod avec Alembic, préfère des migrations.
        """
        if self._engine is not None:
            return
        self._engine = self._build_engine()
        SQLModel.metadata.create_all(self._engine)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def session(self) -> Session:
        return Session(self.engine)


def get_session(request: Request) -> Iterator[Session]:
    """
    Dépendance FastAPI : fournit une session par requête.
    Utilisation :
        def route(..., session: Session = Depends(get_session)):
            ...
    """
    db: Database = request.app.state.db
    with db.session() as session:
        yield session
