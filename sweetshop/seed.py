"""
Create the tables and an initial admin account.

    python -m sweetshop.seed --username admin --password admin123
"""
import argparse
import logging

from sqlalchemy.orm import Session

from sweetshop.crud import crud_user
from sweetshop.database import SessionLocal, init_db
from sweetshop.models import User
from sweetshop.services import auth_service

logger = logging.getLogger(__name__)


def seed_admin(db: Session, username: str, password: str) -> User:
    """Register `username` as an admin unless the account already exists"""
    existing = crud_user.get_by_username(db, username)
    if existing is not None:
        logger.info(f"User {username} already exists, leaving it unchanged")
        return existing
    return auth_service.register(db, username, password, is_admin=True).user


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the sweet shop database")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--password", required=True)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    init_db()
    with SessionLocal() as db:
        user = seed_admin(db, args.username, args.password)
    print(f"✅ Admin account ready: {user.username} (id={user.id})")


if __name__ == "__main__":
    main()
