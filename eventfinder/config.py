from dotenv import load_dotenv
import os

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./eventfinder.db")

    SECRET_KEY = os.getenv("SECRET_KEY", "eventfinder-dev-secret")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # "memory" keeps sessions in-process, "database" shares them between instances
    SESSION_BACKEND = os.getenv("SESSION_BACKEND", "database")
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "eventfinder_session")
    SESSION_MAX_AGE_SECONDS = int(os.getenv("SESSION_MAX_AGE_SECONDS", "86400"))
    SESSION_COOKIE_SECURE = _as_bool(os.getenv("SESSION_COOKIE_SECURE", "false"))

    SEED_DATABASE = _as_bool(os.getenv("SEED_DATABASE", "true"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
