"""Primary-key lookup shared by the repositories."""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from ..database import Base
from ..exceptions import ReqForgeError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """A repository bound to one session and one mapped class.

    Subclasses set ``model_class`` and ``not_found_error``. ``id_column``
    only needs overriding when the key is not called ``id``.
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[ReqForgeError]

    def __init__(self, db: Session):
        self.db = db

    def find(self, entity_id: str) -> Optional[ModelT]:
        key = getattr(self.model_class, self.id_column)
        return self.db.query(self.model_class).filter(key == entity_id).first()

    def get_by_id(self, entity_id: str) -> ModelT:
        """Like ``find`` but raises ``not_found_error`` for an unknown key."""
        entity = self.find(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity
