import os
from pathlib import Path

# === Path Settings ===
BASE_DIR = Path(__file__).parent.absolute()
STATIC_DIR = Path(os.getenv("STATIC_DIR", str(BASE_DIR / "frontend")))

# === API & Network Settings ===
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("PORT", "3000"))
FRONTEND_URL = os.getenv("FRONTEND_URL", f"http://localhost:{API_PORT}")
MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", str(10 * 1024 * 1024)))  # 10 MB, photos are inlined
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# === MySQL Settings ===
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "3306"))
DB_USER = os.getenv("DB_USER", "root")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_DATABASE = os.getenv("DB_DATABASE", "face_recognition")
DATABASE_URL = os.getenv("DATABASE_URL")  # Overrides the DB_* settings when set

# === Connection Pool ===
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "30"))  # Seconds to wait for a free connection
DB_CONNECT_RETRIES = int(os.getenv("DB_CONNECT_RETRIES", "5"))
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", "5"))
DB_CREATE_TABLES = os.getenv("DB_CREATE_TABLES", "true").lower() in ("1", "true", "yes")

# === Records ===
DESCRIPTOR_LENGTH = 128
LOG_LIST_LIMIT = 100
LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
