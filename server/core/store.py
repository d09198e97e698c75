# server/core/store.py

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from database import Database
from models.user import User
from models.book import Book
from core.errors import ConflictError, DownstreamError


# -------------------------------
# Credential Store
# -------------------------------

class UserStore:
    def __init__(self, database: Database):
        self.database = database

    def create_user(self, username: str, email: str, password_hash: str) -> User:
        """
        Inserts a new user. Email uniqueness is checked before username
        uniqueness; a constraint violation on insert is also a conflict.
        """
        try:
            with self.database.session() as db:
                if db.query(User).filter(User.email == email).first():
                    raise ConflictError("User already exists")
                if db.query(User).filter(User.username == username).first():
                    raise ConflictError("Username is taken, try another name.")

                user = User(username=username, email=email, password=password_hash)
                db.add(user)
                try:
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    raise ConflictError("User already exists")
                return user
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))

    def find_by_email(self, email: str) -> User | None:
        try:
            with self.database.session() as db:
                return db.query(User).filter(User.email == email).first()
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))

    def find_by_id(self, user_id: str) -> User | None:
        try:
            with self.database.session() as db:
                return db.get(User, user_id)
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))


# -------------------------------
# Catalog Store
# -------------------------------

BOOK_FIELDS = ("image", "image_id", "title", "subtitle", "author", "link", "review")


class BookStore:
    def __init__(self, database: Database):
        self.database = database

    def create(self, user_id: str | None, **fields) -> Book:
        try:
            with self.database.session() as db:
                book = Book(user_id=user_id, **{k: fields.get(k) for k in BOOK_FIELDS})
                db.add(book)
                db.commit()
                return book
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))

    def list_books(self) -> list[Book]:
        """All books, newest first."""
        return self.search("")

    def search(self, term: str) -> list[Book]:
        """
        Case-insensitive substring match on title, newest first.

        Matching is done with str.casefold() rather than SQL lower(), which
        only folds ASCII on SQLite.
        """
        try:
            with self.database.session() as db:
                books = db.query(Book).order_by(Book.created_at.desc()).all()
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))

        if not term:
            return books
        needle = term.casefold()
        return [b for b in books if needle in b.title.casefold()]

    def get(self, book_id: str) -> Book | None:
        try:
            with self.database.session() as db:
                return db.get(Book, book_id)
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))

    def get_with_owner(self, book_id: str) -> tuple[Book, str | None] | None:
        """The book plus its owner's username (None if the owner is gone)."""
        try:
            with self.database.session() as db:
                row = (
                    db.query(Book, User.username)
                    .outerjoin(User, Book.user_id == User.id)
                    .filter(Book.id == book_id)
                    .first()
                )
                if row is None:
                    return None
                return row[0], row[1]
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))

    def update(self, book_id: str, **fields) -> Book | None:
        """Overwrites the given fields. Returns the updated book, or None if absent."""
        try:
            with self.database.session() as db:
                book = db.get(Book, book_id)
                if book is None:
                    return None
                for key in BOOK_FIELDS:
                    if key in fields:
                        setattr(book, key, fields[key])
                db.commit()
                db.refresh(book)
                return book
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))

    def delete(self, book_id: str) -> bool:
        try:
            with self.database.session() as db:
                deleted = db.query(Book).filter(Book.id == book_id).delete()
                db.commit()
                return deleted > 0
        except SQLAlchemyError as e:
            raise DownstreamError(str(e))
