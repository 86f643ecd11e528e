from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    LLM_PROVIDER: str = "lmstudio"
    LLM_API_URL: str = "http://localhost:1234/v1/chat/completions"
    LLM_BASE_URL: str = ""
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "deepseek-coder-7b"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 4000
    VALIDATE_MAX_TOKENS: int = 2048
    LLM_TIMEOUT: float = 120.0

    JUDGE0_API_URL: str = "https://judge0-ce.p.rapidapi.com"
    JUDGE0_API_HOST: str = "judge0-ce.p.rapidapi.com"
    JUDGE0_API_KEY: str = ""
    JUDGE0_POLL_INTERVAL: float = 1.0
    JUDGE0_MAX_POLLS: int = 10

    JWT_SECRET: str = "change-me-to-a-long-random-secret"
    JWT_EXPIRES_MINUTES: int = 60

    DB_NAME: str = ".amplifier.db"
    HISTORY_LIMIT: int = 10

    RATE_LIMIT: str = "30/minute"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    model_config = SettingsConfigDict(env_file=".env")
