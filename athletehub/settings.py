import os
from dotenv import load_dotenv

# Load .env.dev manually (in case of local dev, optional)
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env.dev"))

# Fetch from OS env (Docker runtime injects this way)
MONGO_URI = os.getenv("MONGO_URI", "mongodb://mongo:27017")
MONGO_DB = os.getenv("MONGO_DB", "athletehub_dev")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")
ACCESS_TOKEN_EXPIRE_MIN = int(os.getenv("ACCESS_TOKEN_EXPIRE_MIN", "30"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
REFRESH_TOKEN_COOKIE = os.getenv("REFRESH_TOKEN_COOKIE", "athletehub_refresh_token")
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"   # set true in production (HTTPS)

# extra attempts for a failed multi-key write before compensating
WRITE_RETRIES = int(os.getenv("WRITE_RETRIES", "1"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE") or None

ROLES = ("athlete", "coach", "medical", "manager")

# profile pictures and team logos, served under /uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
