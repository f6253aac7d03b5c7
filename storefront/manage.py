"""
Admin maintenance commands

Usage:
  storefront-admin make-admin <email>
  storefront-admin set-admin-password <email> <new-password>
"""
import argparse
import sys

from sqlalchemy.orm import Session

from . import crud
from .auth import hash_password
from .errors import DomainError, NotFound, ValidationFailed
from .utils import configure_logging


def make_admin(db: Session, email: str) -> str:
    user = crud.get_user_by_email(db, email)
    if not user:
        raise NotFound(f"User not found for email: {email}")
    if user.role == "admin":
        return "User is already an admin."
    crud.update_user_role(db, user.id, "admin")
    return f"User promoted to admin: {user.email}"


def set_admin_password(db: Session, email: str, new_password: str) -> str:
    crud.check_password_policy(new_password)
    user = crud.get_user_by_email(db, email)
    if not user:
        raise NotFound(f"User not found for email: {email}")
    if user.role != "admin":
        raise ValidationFailed(f"User is not an admin (role={user.role}).")
    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    return f"Admin password updated for {user.email}"


def main(argv=None, session_factory=None):
    parser = argparse.ArgumentParser(prog="storefront-admin")
    sub = parser.add_subparsers(dest="command", required=True)
    p_admin = sub.add_parser("make-admin", help="promote a user to admin")
    p_admin.add_argument("email")
    p_pwd = sub.add_parser("set-admin-password", help="set the password of an admin")
    p_pwd.add_argument("email")
    p_pwd.add_argument("password")
    args = parser.parse_args(argv)

    configure_logging()
    if session_factory is None:
        from .db import SessionLocal
        session_factory = SessionLocal

    db = session_factory()
    try:
        if args.command == "make-admin":
            message = make_admin(db, args.email)
        else:
            message = set_admin_password(db, args.email, args.password)
    except DomainError as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        db.close()
    print(message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
