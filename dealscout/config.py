from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # System
    LOG_LEVEL: str = "INFO"
    DATA_DIR: Path = Path("./data")
    DATABASE_FILE: str = "deals.db"

    # AI analysis (Ollama-compatible endpoint). No base URL means no credentials.
    AI_ANALYSIS_ENABLED: bool = True
    OLLAMA_BASE_URL: str | None = "http://localhost:11434"
    OLLAMA_API_KEY: str | None = None
    OLLAMA_MODEL: str = "llama3.1"
    AI_CONTENT_CHAR_LIMIT: int = 5000
    AI_MAX_ATTEMPTS: int = 2

    # Fetching
    HTTP_TIMEOUT: float = 20.0
    USER_AGENT: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
    REQUEST_DELAY_SECONDS: float = 2.0  # Minimum gap between requests of one adapter
    RATE_LIMIT_BACKOFF_SECONDS: float = 60.0  # Sleep after HTTP 429 before the single retry
    REDDIT_BASE_URL: str = "https://www.reddit.com"
    REDDIT_POSTS_PER_SUBREDDIT: int = 100
    PRODUCTHUNT_BASE_URL: str = "https://www.producthunt.com"
    PRODUCTHUNT_ITEMS_PER_TOPIC: int = 50
    NEWSLETTER_BASE_URL: str = "https://www.indiehustle.co"
    NEWSLETTER_PAGE_SIZE: int = 50
    NEWSLETTER_MAX_POSTS: int = 100
    NEWSLETTER_DEEP_FETCH: bool = True

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8001
    SCAN_ABORT_GRACE_SECONDS: float = 5.0  # Wait for a disconnected scan to stop on its own before cancelling

    @property
    def database_path(self) -> Path:
        return self.DATA_DIR / self.DATABASE_FILE

    def ensure_dirs(self):
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)

settings = Settings()
