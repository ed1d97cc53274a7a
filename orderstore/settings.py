"""Runtime settings read from the environment."""

import os

DB_HOST = os.getenv("DB_HOST", "orders-db")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "orders")
DB_USER = os.getenv("DB_USER", "orders_user")
DB_PASSWORD = os.getenv("DB_PASSWORD", "orders-pass")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))

# Seconds; bootstrap over budget is fatal
SCHEMA_INIT_TIMEOUT = float(os.getenv("SCHEMA_INIT_TIMEOUT", "10"))
DB_STARTUP_TIMEOUT = float(os.getenv("DB_STARTUP_TIMEOUT", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
WORKERS = int(os.getenv("UVICORN_WORKERS", str(max(2, (os.cpu_count() or 1)))))
