# server/models/book.py

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from . import Base
from .user import new_id


# -------------------------------
# Book Model
# -------------------------------

class Book(Base):
    """
    A catalog entry. `image_id` is the image host's asset id for `image`,
    recorded at upload time so the asset can be removed later.
    """
    __tablename__ = "books"

    id = Column(String(32), primary_key=True, default=new_id)
    image = Column(String, nullable=False)
    image_id = Column(String, nullable=False)
    title = Column(String, index=True, nullable=False)
    subtitle = Column(String, nullable=True)
    author = Column(String, nullable=False)
    link = Column(String, nullable=False)
    review = Column(Text, nullable=True)
    user_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)
