from contextlib import contextmanager
from typing import Generic, Iterator, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, select

ModelT = TypeVar("ModelT", bound=SQLModel)


class BaseRepository(Generic[ModelT]):
    """
    Accès générique à une table SQLModel.

    👉 Chaque écriture est commitée tout de suite (une ligne = une transaction).
    👉 Si le commit échoue, la session est remise en état (rollback) puis
       l'erreur SQLAlchemy remonte telle quelle : c'est au service de la traduire.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def find_one(self, **filters) -> Optional[ModelT]:
        return self.session.exec(select(self.model).filter_by(**filters)).first()

    def create(self, **fields) -> ModelT:
        entity = self.model(**fields)
        with self._transaction():
            self.session.add(entity)
        self.session.refresh(entity)
        return entity

    def update(self, entity: ModelT, **changes) -> ModelT:
        with self._transaction():
            for key, value in changes.items():
                setattr(entity, key, value)
            self.session.add(entity)
        self.session.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        with self._transaction():
            self.session.delete(entity)
