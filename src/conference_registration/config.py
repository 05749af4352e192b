"""Configuration loader for the conference registration service"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

DEFAULT_ALLOWED_ORIGINS = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173"

# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL"),
    "port": int(os.getenv("PORT", "5000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "environment": os.getenv("ENVIRONMENT", "development"),
    "allowed_origins": [
        origin.strip()
        for origin in os.getenv("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS).split(",")
        if origin.strip()
    ],
    # Upload limits (bytes / seconds)
    "max_file_size": int(os.getenv("MAX_FILE_SIZE", str(5 * 1024 * 1024))),
    "upload_timeout_seconds": float(os.getenv("UPLOAD_TIMEOUT", "30")),
    "max_page_size": int(os.getenv("MAX_PAGE_SIZE", "100")),
    "mailgun_api_key": os.getenv("MAILGUN_API_KEY"),
    "mailgun_domain": os.getenv("MAILGUN_DOMAIN"),
    "sender_email": os.getenv("SENDER_EMAIL"),
    "conference_name": os.getenv("CONFERENCE_NAME", "AI Conference"),
    "admin_api_key": os.getenv("ADMIN_API_KEY"),
}
