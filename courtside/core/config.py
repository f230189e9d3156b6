import os

def get_secret(secret_name: str) -> str | None:
    secret_path = f'/run/secrets/{secret_name}'
    try:
        with open(secret_path, 'r', encoding='utf-8') as secret_file:
            return secret_file.read().strip()
    except IOError:
        return os.getenv(secret_name)


DB_PASSWORD = get_secret('db_password')
SECRET_KEY = get_secret('secret_key') or "dev-only-secret"

POSTGRES_DB = os.getenv("POSTGRES_DB", "courtside")
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Claims hold a pooled connection for the whole lock-insert-commit cycle
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
SERVICE_NAME = os.getenv("SERVICE_NAME", "courtside-seats")

DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"postgresql+asyncpg://{POSTGRES_USER}:{DB_PASSWORD or 'postgres'}@{DB_HOST}:{DB_PORT}/{POSTGRES_DB}"
)

ALGORITHM = "HS256"
JWT_ISSUER = os.getenv("JWT_ISSUER", "courtside-idp")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "courtside-web")

# Clients re-fetch taken seats and inventory on this interval instead of subscribing
POLL_INTERVAL_SECONDS = int(os.getenv("POLL_INTERVAL_SECONDS", "5"))

INVALIDATE_BATCH_LIMIT = int(os.getenv("INVALIDATE_BATCH_LIMIT", "500"))
LOW_INVENTORY_THRESHOLD = float(os.getenv("LOW_INVENTORY_THRESHOLD", "0.1"))
INVENTORY_KEY_PREFIX = os.getenv("INVENTORY_KEY_PREFIX", "inventory")

AUDIT_STREAM = os.getenv("AUDIT_STREAM", "audit:seats")
NOTIFICATION_STREAM = os.getenv("NOTIFICATION_STREAM", "notifications:tickets")
