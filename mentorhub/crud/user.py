from typing import List, Optional

from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.models.user import ROLE_MENTOR
from mentorhub.utils.security import get_password_hash


def create_user(db: Session, *, name: str, email: str, password: str, role: str) -> models.User:
    db_user = models.User(
        name=name,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        approved=False,
        is_active=True,
    )
    db.add(db_user)
    db.flush()
    return db_user


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_course(db: Session, course_id: int) -> Optional[models.Course]:
    return db.query(models.Course).filter(models.Course.id == course_id).first()


def list_approved_mentors(db: Session) -> List[models.User]:
    return db.query(models.User).filter(
        models.User.role == ROLE_MENTOR,
        models.User.approved.is_(True),
    ).order_by(models.User.id).all()
