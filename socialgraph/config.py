"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # ── Document store ─────────────────────────────────────────────────────
    # "sql" talks to TiDB/MySQL (aiomysql) or SQLite (aiosqlite);
    # "memory" keeps everything in-process and is meant for tests and demos.
    store_backend: Literal["sql", "memory"] = "sql"
    database_url: str = "sqlite+aiosqlite:///./socialgraph.db"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    db_echo: bool = False

    # ── Engine behaviour ───────────────────────────────────────────────────
    # Derive a notification even when actor and recipient are the same account
    notify_self: bool = False

    # ── Observability ──────────────────────────────────────────────────────
    log_level: str = "INFO"
    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "socialgraph"
    environment: str = "development"


settings = Settings()
