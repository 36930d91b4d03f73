from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from sweetshop.crud.base import CRUDBase
from sweetshop.models import User


class CRUDUser(CRUDBase[User]):
    def __init__(self):
        super().__init__(User)

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        """Exact, case-sensitive username lookup"""
        stmt = select(User).where(User.username == username)
        return db.execute(stmt).scalar_one_or_none()


crud_user = CRUDUser()
