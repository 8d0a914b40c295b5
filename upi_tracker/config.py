import os
from pathlib import Path

# Diretório base do backend
BASE_DIR = Path(__file__).resolve().parent.parent

# Prefixo comum de todas as rotas da API
API_PREFIX = os.getenv("API_PREFIX", "/api")

# "database" (SQLModel) ou "memory" (somente desenvolvimento)
REPOSITORY_BACKEND = os.getenv("REPOSITORY_BACKEND", "database").lower()

DEFAULT_JWT_SECRET = "fallback-secret-key"
DEFAULT_SESSION_SECRET = "upi-qr-tracker-secret-key"

JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

SESSION_SECRET = os.getenv("SESSION_SECRET", DEFAULT_SESSION_SECRET)
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(24 * 60 * 60)))
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
