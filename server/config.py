# server/config.py

import os
from dataclasses import dataclass, field
from dotenv import load_dotenv


load_dotenv()


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """
    Runtime configuration, read from the environment (and `.env`).
    Passed explicitly to the app factory, stores and media manager.
    """

    # Database
    database_url: str = "sqlite:///./data/library.db"

    # Session tokens
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7

    # Image host (Cloudinary)
    cloud_name: str | None = None
    cloud_api_key: str | None = None
    cloud_api_secret: str | None = None
    media_folder: str = "library"

    # HTTP
    environment: str = "development"
    max_body_size: int = 20 * 1024 * 1024
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    host: str = "0.0.0.0"
    port: int = 5000

    log_level: str = "INFO"

    @property
    def secure_cookies(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        secret_key = os.getenv("JWT_SECRET_KEY")
        if not secret_key:
            raise RuntimeError("JWT_SECRET_KEY is not set")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            jwt_secret_key=secret_key,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            token_expire_days=int(os.getenv("TOKEN_EXPIRE_DAYS", str(cls.token_expire_days))),
            cloud_name=os.getenv("CLOUD_NAME"),
            cloud_api_key=os.getenv("API_KEY"),
            cloud_api_secret=os.getenv("API_SECRET"),
            media_folder=os.getenv("MEDIA_FOLDER", cls.media_folder),
            environment=os.getenv("ENVIRONMENT", cls.environment),
            max_body_size=int(os.getenv("MAX_BODY_SIZE", str(cls.max_body_size))),
            cors_origins=_env_list("CORS_ORIGINS", "http://localhost:5173"),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
