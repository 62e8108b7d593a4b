import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./filedrop.db")
    DB_ECHO: bool = _env_bool("DB_ECHO", "false")

    MINIO_ENDPOINT: str = os.getenv("MINIO_ENDPOINT", "minio:9000")
    MINIO_ACCESS_KEY: str = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
    MINIO_SECRET_KEY: str = os.getenv("MINIO_SECRET_KEY", "minioadmin")
    MINIO_BUCKET: str = os.getenv("MINIO_BUCKET", "filedrop")
    MINIO_SECURE: bool = _env_bool("MINIO_SECURE", "false")

    # Empty means "derive from the incoming request".
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "")

    MAX_FILE_SIZE: int = int(os.getenv("MAX_FILE_SIZE", str(1024 * 1024 * 1024)))
    MAX_EXPIRATION_DAYS: int = int(os.getenv("MAX_EXPIRATION_DAYS", "30"))

    CLEANUP_ENABLED: bool = _env_bool("CLEANUP_ENABLED", "true")
    CLEANUP_INTERVAL_SECONDS: int = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "300"))
    CLEANUP_BATCH_SIZE: int = int(os.getenv("CLEANUP_BATCH_SIZE", "100"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
