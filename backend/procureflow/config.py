# procureflow/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "ProcureFlow API"
    VERSION: str = os.getenv("APP_VERSION", "1.0.0")
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # LLM provider selection: "openai" | "gemini" | None (auto-detect from keys)
    ai_provider: str | None = os.getenv("AI_PROVIDER")
    llm_timeout_seconds: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

    # OpenAI chat completions
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_api_url: str = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    # Google Gemini (REST generateContent)
    google_api_key: str | None = os.getenv("GOOGLE_API_KEY")
    gemini_api_base: str = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # Agent prompt budgets (keep API cost bounded)
    agent_max_history_messages: int = int(os.getenv("AGENT_MAX_HISTORY_MESSAGES", "20"))
    agent_max_history_tokens: int = int(os.getenv("AGENT_MAX_HISTORY_TOKENS", "2000"))
    agent_max_total_tokens: int = int(os.getenv("AGENT_MAX_TOTAL_TOKENS", "3000"))

settings = Settings()  # Instantiate configuration
