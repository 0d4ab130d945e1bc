"""Database settings for the expense tracker, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from sqlalchemy.engine.url import URL, make_url

ENV_PREFIX = "EXPENSE_TRACKER_"


@dataclass(frozen=True)
class DatabaseSettings:
    host: str = "localhost"
    port: int = 3306
    name: str = "expense_tracker"
    user: str = "root"
    password: str = ""
    connect_timeout: int = 5
    read_timeout: int = 5
    drivername: str = "mysql+pymysql"
    url: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DatabaseSettings":
        env = os.environ if environ is None else environ

        def get(key: str, default: str) -> str:
            value = env.get(ENV_PREFIX + key)
            return default if value in (None, "") else value

        return cls(
            host=get("DB_HOST", cls.host),
            port=int(get("DB_PORT", str(cls.port))),
            name=get("DB_NAME", cls.name),
            user=get("DB_USER", cls.user),
            password=get("DB_PASSWORD", cls.password),
            connect_timeout=int(get("DB_CONNECT_TIMEOUT", str(cls.connect_timeout))),
            read_timeout=int(get("DB_READ_TIMEOUT", str(cls.read_timeout))),
            url=env.get(ENV_PREFIX + "DATABASE_URL") or None,
        )

    def database_url(self) -> URL:
        """URL of the target schema; an explicit ``url`` wins over the parts."""
        if self.url:
            return make_url(self.url)
        return URL.create(
            drivername=self.drivername,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.name,
        )
