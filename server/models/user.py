# server/models/user.py

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from . import Base


def new_id() -> str:
    return uuid.uuid4().hex


# -------------------------------
# User Model
# -------------------------------

class User(Base):
    """
    Database model for catalog users.
    Stores identity fields and the bcrypt hash of the password.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
