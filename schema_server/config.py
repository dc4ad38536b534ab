import os
from dataclasses import dataclass

def int_env(name: str, default: int, *, min_value: int | None = None, max_value: int | None = None) -> int:
    """
    Read an env var and convert to int, with optional range validation.
    Falls back to `default` if var is unset or its parsing fails.
    """
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except (ValueError, TypeError):
        value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value
    return value

def bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

@dataclass(frozen=True)
class Settings:
    upstream_url: str = "http://127.0.0.1:9001/schema"
    schema_file: str | None = None
    fetch_timeout_sec: int = 30
    refresh_cooldown_sec: int = 30 * 60
    update_interval_sec: int = 24 * 60 * 60   # 0 disables scheduled refresh
    bootstrap_retry_ms: int = 5000
    startup_blocking: bool = True
    bind_host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            upstream_url=os.getenv("UPSTREAM_URL", cls.upstream_url),
            schema_file=os.getenv("SCHEMA_FILE") or None,
            fetch_timeout_sec=int_env("FETCH_TIMEOUT_SEC", cls.fetch_timeout_sec, min_value=1),
            refresh_cooldown_sec=int_env("REFRESH_COOLDOWN_SEC", cls.refresh_cooldown_sec, min_value=0),
            update_interval_sec=int_env("SCHEMA_UPDATE_INTERVAL_SEC", cls.update_interval_sec, min_value=0),
            bootstrap_retry_ms=int_env("BOOTSTRAP_RETRY_MS", cls.bootstrap_retry_ms, min_value=100),
            startup_blocking=bool_env("STARTUP_BLOCKING", cls.startup_blocking),
            bind_host=os.getenv("BIND_HOST", cls.bind_host),
            port=int_env("PORT", cls.port, min_value=1, max_value=65535),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
