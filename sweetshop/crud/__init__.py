from .sweet import crud_sweet
from .user import crud_user

__all__ = ["crud_sweet", "crud_user"]
