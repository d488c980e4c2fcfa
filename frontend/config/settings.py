"""
Application configuration settings.
"""
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings"""

    # Backend API
    API_URL = os.getenv("API_URL", "http://localhost:8000")
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # Read cache for GET requests, cleared after every mutation
    QUERY_CACHE_TTL = int(os.getenv("QUERY_CACHE_TTL", "60"))

    # File upload
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))  # 10 MB

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("FRONTEND_LOG_DIR", "frontend/logs")

    # UI
    PAGE_TITLE = "Lab Notebook"
    PAGE_ICON = "🧪"
    LAYOUT = "wide"


settings = Settings()
