"""Configuration settings for Campaign Hub."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
DATABASE_PATH = Path(os.getenv("DATABASE_PATH", DATA_DIR / "campaign_hub.db"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Backend selection
LLM_BACKEND = os.getenv("LLM_BACKEND", "openai")

# OpenAI settings
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))

# OpenRouter settings (uses OpenAI SDK)
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "openai/gpt-4o")
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

# HTTP / auth settings
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-in-production")
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

# Page sizes for history endpoints
CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", "50"))
GAME_LOG_LIMIT = int(os.getenv("GAME_LOG_LIMIT", "50"))

# Allowed values for enumerated text columns
USER_STATUSES = ("online", "away", "busy", "offline")
INVITATION_ROLES = ("player", "spectator")
RESPONSE_STATUSES = ("accepted", "rejected")
