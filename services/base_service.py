"""
Base service class with common lookup patterns
"""
from typing import Type, TypeVar, Optional, Any, Generic
from sqlalchemy.orm import Session

from api.attendance.attendance_errors import NotFound

T = TypeVar('T')


class BaseService(Generic[T]):
    """Base service class holding the session and the primary model"""

    def __init__(self, db: Session, model_class: Type[T]):
        self.db = db
        self.model_class = model_class

    def get_by_id(self, obj_id: Any) -> Optional[T]:
        """Get object by ID"""
        return self.db.get(self.model_class, obj_id)

    def get_by_id_or_404(self, obj_id: Any, message: Optional[str] = None) -> T:
        """Get object by ID or raise NotFound"""
        obj = self.get_by_id(obj_id)
        if obj is None:
            raise NotFound(message or f"{self.model_class.__name__} not found.")
        return obj
