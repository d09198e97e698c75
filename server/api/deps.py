# server/api/deps.py

from fastapi import Request
from core.media import MediaManager
from core.security import SessionManager
from core.store import UserStore, BookStore


# Components are built once in main.create_app and hung on app.state.

def get_users(request: Request) -> UserStore:
    return request.app.state.users


def get_books(request: Request) -> BookStore:
    return request.app.state.books


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_media(request: Request) -> MediaManager:
    return request.app.state.media
