import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite file location (kept compatible with the old agenda.db in the working dir)
DB_PATH = os.getenv("DB_PATH", str(Path.cwd() / "agenda.db"))
DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{DB_PATH}"

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Bearer token lifetime, same 24h window the old session cookie had
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Seed default cities/subjects/users/vacancy grid into an empty database
SEED_DEFAULT_DATA = os.getenv("SEED_DEFAULT_DATA", "true").lower() == "true"

# Frontend base URL (dashboard served separately)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3001")
