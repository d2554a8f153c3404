from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Realty Purchase Flow API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./purchase_flow.db"
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Investment platform REST backend (profiles, schemes, payments, documents)
    platform_api_url: str = "http://localhost:8000/api"
    platform_timeout_seconds: float = 30.0

    session_header: str = "X-Session-Id"

    # Business constants for plan quotes
    min_payment_floor: int = 50_000
    installment_rental_rate: float = 0.30
    single_payment_rental_rate: float = 0.01

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)
    _is_postgresql: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)
        object.__setattr__(self, "_is_postgresql", "postgresql" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def is_postgresql(self) -> bool:
        return self._is_postgresql


settings = Settings()
