# server/main.py

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from api import auth, books
from config import Settings
from core.errors import LibraryError
from core.media import MediaManager
from core.security import SessionManager
from core.store import UserStore, BookStore
from database import Database


logger = logging.getLogger(__name__)

BODY_TOO_LARGE = "Request body too large."


def init_database(database: Database):
    """Connects and creates tables; the process exits if this fails."""
    try:
        database.init_db()
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database connection failed: %s", e)
        raise SystemExit(1)


class BodySizeLimitMiddleware:
    """
    Rejects request bodies over `settings.max_body_size` with 400. Declared
    lengths are checked up front; streamed bodies are counted as they arrive.
    """

    def __init__(self, app, settings: Settings):
        self.app = app
        self.settings = settings

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.settings.max_body_size
        length = dict(scope["headers"]).get(b"content-length", b"")
        if length.isdigit() and int(length) > limit:
            response = JSONResponse(status_code=400, content={"message": BODY_TOO_LARGE})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise HTTPException(status_code=400, detail=BODY_TOO_LARGE)
            return message

        await self.app(scope, limited_receive, send)


def create_app(settings: Settings | None = None, media: MediaManager | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if not settings.jwt_secret_key:
        raise RuntimeError("JWT_SECRET_KEY is not set")
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    database = Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_database(database)
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(title="Library Catalog", lifespan=lifespan)

    app.state.settings = settings
    app.state.database = database
    app.state.users = UserStore(database)
    app.state.books = BookStore(database)
    app.state.sessions = SessionManager(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(days=settings.token_expire_days),
        secure=settings.secure_cookies,
    )
    app.state.media = media or MediaManager(
        settings.cloud_name,
        settings.cloud_api_key,
        settings.cloud_api_secret,
        folder=settings.media_folder,
    )

    app.add_middleware(BodySizeLimitMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LibraryError)
    async def library_error_handler(request: Request, exc: LibraryError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            loc = ".".join(str(part) for part in errors[0].get("loc", ()))
            message = f"{loc}: {errors[0].get('msg', 'invalid value')}"
        else:
            message = "Invalid request."
        return JSONResponse(status_code=400, content={"message": message})

    app.include_router(auth.router)
    app.include_router(books.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)
