# server/api/books.py

import logging
import re
from pydantic import BaseModel
from fastapi import APIRouter, Depends
from api.auth import get_current_user
from api.deps import get_books, get_media, get_users
from core.errors import DownstreamError, NotFoundError, ValidationError
from core.media import MediaManager
from core.store import BookStore, UserStore
from models.book import Book


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

BOOK_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class BookRequest(BaseModel):
    """
    Body for add-book and update-book. `image` is a base64 data:image URI;
    on update it is optional.
    """
    image: str | None = None
    title: str | None = None
    subtitle: str | None = None
    author: str | None = None
    link: str | None = None
    review: str | None = None


# -------------------------------
# Helpers
# -------------------------------

def serialize_book(book: Book) -> dict:
    return {
        "id": book.id,
        "image": book.image,
        "title": book.title,
        "subtitle": book.subtitle,
        "author": book.author,
        "link": book.link,
        "review": book.review,
        "user": book.user_id,
        "created_at": book.created_at,
        "updated_at": book.updated_at,
    }


def parse_book_id(book_id: str) -> str:
    if not BOOK_ID_PATTERN.match(book_id):
        raise ValidationError("Invalid book id.")
    return book_id


def require_fields(req: BookRequest):
    if not req.title or not req.author or not req.link:
        raise ValidationError("Title, author and link are required.")


def discard_asset(media: MediaManager, asset_id: str):
    """Removes an asset no record points to; logs if it is left orphaned."""
    if not media.delete(asset_id):
        logger.error("Orphaned asset %s could not be removed", asset_id)


# -------------------------------
# Catalog Endpoints
# -------------------------------

@router.post("/add-book")
def add_book(
    req: BookRequest,
    user_id: str = Depends(get_current_user),
    users: UserStore = Depends(get_users),
    books: BookStore = Depends(get_books),
    media: MediaManager = Depends(get_media),
):
    """
    Uploads the cover, then records the book. If the record cannot be
    written, the freshly uploaded cover is removed again.
    """
    if not req.image:
        raise ValidationError("Image is required.")
    require_fields(req)

    if users.find_by_id(user_id) is None:
        raise NotFoundError("User not found.", status_code=400)

    asset = media.upload(req.image)
    try:
        book = books.create(
            user_id,
            image=asset.url,
            image_id=asset.asset_id,
            title=req.title,
            subtitle=req.subtitle,
            author=req.author,
            link=req.link,
            review=req.review,
        )
    except DownstreamError:
        discard_asset(media, asset.asset_id)
        raise

    return {"book": serialize_book(book), "message": "Book added successfully."}


@router.get("/fetch-books")
def fetch_books(books: BookStore = Depends(get_books)):
    return {"books": [serialize_book(b) for b in books.list_books()]}


@router.get("/search")
def search_books(searchTerm: str = "", books: BookStore = Depends(get_books)):
    return {"books": [serialize_book(b) for b in books.search(searchTerm)]}


@router.get("/fetch-book/{book_id}")
def fetch_book(book_id: str, books: BookStore = Depends(get_books)):
    found = books.get_with_owner(parse_book_id(book_id))
    if found is None:
        raise NotFoundError("Book not found.")
    book, owner = found
    data = serialize_book(book)
    data["user"] = {"id": book.user_id, "username": owner}
    return {"book": data}


@router.delete("/delete-book/{book_id}")
def delete_book(
    book_id: str,
    user_id: str = Depends(get_current_user),
    books: BookStore = Depends(get_books),
    media: MediaManager = Depends(get_media),
):
    """
    Removes the record first, then its cover, so no surviving record ever
    points at a deleted asset.
    """
    book = books.get(parse_book_id(book_id))
    if book is None:
        raise NotFoundError("Book not found.", status_code=400)

    books.delete(book.id)
    discard_asset(media, book.image_id)

    return {"message": "Book deleted successfully."}


@router.post("/update-book/{book_id}")
def update_book(
    book_id: str,
    req: BookRequest,
    user_id: str = Depends(get_current_user),
    books: BookStore = Depends(get_books),
    media: MediaManager = Depends(get_media),
):
    """
    Overwrites the text fields. When a new image is supplied it is uploaded
    first; the old cover is removed only after the record points elsewhere.
    """
    book = books.get(parse_book_id(book_id))
    if book is None:
        raise NotFoundError("Book not found.", status_code=400)
    require_fields(req)

    fields = {
        "title": req.title,
        "subtitle": req.subtitle,
        "author": req.author,
        "link": req.link,
        "review": req.review,
    }

    if not req.image:
        updated = books.update(book.id, **fields)
        if updated is None:
            raise NotFoundError("Book not found.", status_code=400)
        return {"book": serialize_book(updated), "message": "Book updated successfully."}

    asset = media.upload(req.image)
    try:
        updated = books.update(book.id, image=asset.url, image_id=asset.asset_id, **fields)
    except DownstreamError:
        discard_asset(media, asset.asset_id)
        raise
    if updated is None:
        # Deleted concurrently; the new cover has no owner.
        discard_asset(media, asset.asset_id)
        raise NotFoundError("Book not found.", status_code=400)

    discard_asset(media, book.image_id)
    return {"book": serialize_book(updated), "message": "Book updated successfully."}
