import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Get the project root directory (where .env should be)
project_root = Path(__file__).parent.parent
env_path = project_root / ".env"

load_dotenv(dotenv_path=env_path)


def _int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    return int(value)


class Settings:
    """Process configuration read from the environment (and .env)."""

    def __init__(self):
        self.app_id = os.getenv("WECHAT_APPID", "")
        self.app_secret = os.getenv("WECHAT_SECRET", "")
        self.mini_map_key = os.getenv("WECHAT_MINI_MAP_API", "")

        self.mongo_uri = os.getenv("MONGO_URI") or "mongodb://localhost:27017"
        self.mongo_db = os.getenv("MONGO_DB") or "playtime"
        self.mongo_user = os.getenv("MONGO_USER", "")
        self.mongo_pass = os.getenv("MONGO_PASS", "")
        self.mongo_timeout = _int_env("MONGO_TIMEOUT", 10)

        self.http_timeout = _int_env("HTTP_TIMEOUT", 10)

        self.cos_secret_id = os.getenv("COS_SECRET_ID", "")
        self.cos_secret_key = os.getenv("COS_SECRET_KEY", "")
        self.cos_bucket_url = os.getenv("COS_BUCKET_URL", "")
        self.cos_region = os.getenv("COS_REGION") or "ap-beijing"

        self.log_level = os.getenv("LOG_LEVEL") or "INFO"

        origins = os.getenv("CORS_ORIGINS")
        self.cors_origins: List[str] = origins.split(",") if origins else ["*"]

    def __repr__(self):
        # secrets stay out of logs
        return (
            f"Settings(mongo_uri={self.mongo_uri!r}, mongo_db={self.mongo_db!r}, "
            f"app_id={self.app_id!r}, cos_bucket_url={self.cos_bucket_url!r})"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
