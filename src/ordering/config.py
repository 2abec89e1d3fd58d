"""Runtime settings, read from environment variables.

    ORDERS_ENV         development | test | staging | production
    ORDERS_BACKEND     redis | memory
    REDIS_URL          redis://host:port/db  (REDIS_ADDR=host:port also accepted)
    REDIS_TIMEOUT      socket timeout for every Redis call, in seconds
    SERVER_HOST        bind address for the HTTP server
    SERVER_PORT        listen port for the HTTP server
    ORDERS_PAGE_SIZE   orders returned per page by GET /orders
    SHUTDOWN_TIMEOUT   seconds to drain in-flight requests on shutdown
    LOG_LEVEL          overrides the level derived from ORDERS_ENV
    LOG_DIR            write rotating log files here (console only if unset)
"""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ENV_VARS = {
    "env": "ORDERS_ENV",
    "backend": "ORDERS_BACKEND",
    "redis_url": "REDIS_URL",
    "redis_timeout": "REDIS_TIMEOUT",
    "server_host": "SERVER_HOST",
    "server_port": "SERVER_PORT",
    "page_size": "ORDERS_PAGE_SIZE",
    "shutdown_timeout": "SHUTDOWN_TIMEOUT",
    "log_level": "LOG_LEVEL",
    "log_dir": "LOG_DIR",
}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    env: str = "development"
    backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    redis_timeout: float = Field(default=5.0, gt=0)
    server_host: str = "0.0.0.0"
    server_port: int = Field(default=3000, ge=1, le=65535)
    page_size: int = Field(default=50, ge=1)
    shutdown_timeout: int = Field(default=10, ge=0)
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] | None = None
    log_dir: str | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        environ = os.environ if environ is None else environ

        values = {field: environ[var] for field, var in _ENV_VARS.items() if environ.get(var)}
        if "redis_url" not in values and environ.get("REDIS_ADDR"):
            values["redis_url"] = f"redis://{environ['REDIS_ADDR']}"

        return cls(**values)
