from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    app_name: str = "Creator Lens"
    database_url: str = "sqlite+aiosqlite:///./creator_insights.db"
    sql_echo: bool = False

    youtube_api_key: str = ""
    youtube_base_url: str = "https://www.googleapis.com/youtube/v3"
    youtube_max_videos: int = 10

    instagram_app_id: str = "936619743392459"
    instagram_base_url: str = "https://i.instagram.com/api/v1"
    instagram_max_posts: int = 6

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    persona_max_attempts: int = 2
    persona_timeout_seconds: float = 60.0

    # Upstream calls carry their own deadline; the pipeline does not impose one
    fetch_timeout_seconds: float = 15.0

    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
