from dotenv import load_dotenv
import os
from dataclasses import dataclass, field
from typing import FrozenSet, List

from signal_relay.core.errors import ConfigError

load_dotenv()


def get_env(name: str, default: str = "") -> str:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def get_int_env(name: str, default: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return int(default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def get_float_env(name: str, default: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return float(default)
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _parse_str_list(value: str) -> List[str]:
    if not value:
        return []
    return [x.strip() for x in value.split(",") if x.strip()]


DEFAULT_API_URL = "http://kol.zhixing.icu/api/user/proxy/frontend-messages"

# Browser-like headers; the frontend API rejects bare clients.
DEFAULT_API_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                  "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "zh-CN,zh;q=0.9",
    "Connection": "keep-alive",
}


@dataclass(frozen=True)
class Settings:
    kol_api_url: str = DEFAULT_API_URL
    kol_api_type: str = "all"
    kol_api_limit: int = 100
    kol_api_timeout: float = 10.0
    kol_api_retry_times: int = 3
    kol_api_retry_delay: float = 1.0

    dingtalk_webhook: str = ""
    dingtalk_secret: str = ""

    schedule_interval_minutes: int = 5
    delivery_interval_seconds: float = 1.0

    dedup_store_path: str = "./data/processed_signals.json"
    dedup_retain: int = 1000

    blocked_channel_ids: FrozenSet[str] = field(default_factory=frozenset)
    min_quality_score: int = 0
    display_timezone: str = "Asia/Shanghai"

    def validate(self) -> "Settings":
        """Raise ConfigError when the relay cannot start with these values."""
        missing = []
        if not self.kol_api_url:
            missing.append("KOL_API_URL")
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
        if not self.kol_api_url.startswith(("http://", "https://")):
            raise ConfigError(f"KOL_API_URL must be an http(s) URL, got {self.kol_api_url!r}")
        if self.dedup_retain <= 0:
            raise ConfigError("DEDUP_RETAIN must be positive")
        if self.schedule_interval_minutes <= 0:
            raise ConfigError("SCHEDULE_INTERVAL_MINUTES must be positive")
        if self.kol_api_retry_times <= 0:
            raise ConfigError("KOL_API_RETRY_TIMES must be positive")
        if not 0 <= self.min_quality_score <= 100:
            raise ConfigError("MIN_QUALITY_SCORE must be between 0 and 100")
        return self


def load_settings() -> Settings:
    """Build settings from the environment (and .env)."""
    return Settings(
        kol_api_url=get_env("KOL_API_URL", DEFAULT_API_URL),
        kol_api_type=get_env("KOL_API_TYPE", "all"),
        kol_api_limit=get_int_env("KOL_API_LIMIT", 100),
        kol_api_timeout=get_float_env("KOL_API_TIMEOUT", 10.0),
        kol_api_retry_times=get_int_env("KOL_API_RETRY_TIMES", 3),
        kol_api_retry_delay=get_float_env("KOL_API_RETRY_DELAY", 1.0),
        dingtalk_webhook=get_env("DINGTALK_WEBHOOK", ""),
        dingtalk_secret=get_env("DINGTALK_SECRET", ""),
        schedule_interval_minutes=get_int_env("SCHEDULE_INTERVAL_MINUTES", 5),
        delivery_interval_seconds=get_float_env("DELIVERY_INTERVAL_SECONDS", 1.0),
        dedup_store_path=get_env("DEDUP_STORE_PATH", "./data/processed_signals.json"),
        dedup_retain=get_int_env("DEDUP_RETAIN", 1000),
        blocked_channel_ids=frozenset(_parse_str_list(get_env("BLOCKED_CHANNEL_IDS", ""))),
        min_quality_score=get_int_env("MIN_QUALITY_SCORE", 0),
        display_timezone=get_env("DISPLAY_TIMEZONE", "Asia/Shanghai"),
    )
