"""
Configuration Module
------------------
Configuration settings for the Quick Cards backend.
"""

import os
import re
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directories
ROOT_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("QUICK_CARDS_DATA_DIR", ROOT_DIR / "data"))
AUDIO_DIR = DATA_DIR / "audio"
DECKS_DIR = DATA_DIR / "decks"
LOGS_DIR = ROOT_DIR / "logs"

# Create directories if they don't exist
for _directory in (DATA_DIR, AUDIO_DIR, DECKS_DIR, LOGS_DIR):
    _directory.mkdir(parents=True, exist_ok=True)

# Server configuration
PORT = int(os.getenv("PORT", "3000"))
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")  # Vite dev server

# API Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
DEFAULT_LLM_PROVIDER = os.getenv("DEFAULT_LLM_PROVIDER", "openai")

# LLM parameters
LLM_CONFIG = {
    "openai": {
        "model": os.getenv("OPENAI_MODEL", "gpt-4.1-nano"),
        "temperature": 0.7,
        "max_tokens": 150,
        "timeout": 60.0,
        "max_retries": 3,
    },
    "anthropic": {
        "model": os.getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-latest"),
        "temperature": 0.7,
        "max_tokens": 150,
        "timeout": 60.0,
        "max_retries": 3,
    },
}

# Per-operation completion parameters
GENERATION_CONFIG = {
    "generate": {"max_tokens": 2048, "temperature": 0.7},
    "preview": {"max_tokens": 256, "temperature": 0.7},
    "review": {"max_tokens": 1024, "temperature": 0.3},
}

# Azure text-to-speech
AZURE_TTS_KEY = os.getenv("AZURE_TTS_KEY", "")
AZURE_TTS_REGION = os.getenv("AZURE_TTS_REGION", "")
AZURE_TTS_OUTPUT_FORMAT = "audio-24khz-48kbitrate-mono-mp3"
AZURE_TTS_USER_AGENT = "quick-cards-app"

AZURE_TTS_VOICES = {
    "Arabic": "ar-SA-HamedNeural",
    "Mandarin Chinese": "zh-CN-XiaoxiaoNeural",
    "Japanese": "ja-JP-NanamiNeural",
    "Portuguese (Brazil)": "pt-BR-ManuelaNeural",
    "Portuguese": "pt-BR-FranciscaNeural",
    "Spanish": "es-MX-DaliaNeural",
    "English": "en-US-JennyNeural",
}

AZURE_TTS_LANGUAGE_CODES = {
    "Arabic": "ar-SA",
    "Mandarin Chinese": "zh-CN",
    "Japanese": "ja-JP",
    "Portuguese (Brazil)": "pt-BR",
    "Portuguese": "pt-BR",
    "Spanish": "es-MX",
    "English": "en-US",
}

# Speech API throttling
TTS_RATE_LIMIT = {
    "requests_per_second": float(os.getenv("TTS_REQUESTS_PER_SECOND", "1")),
    "max_retries": int(os.getenv("TTS_MAX_RETRIES", "3")),
    "initial_backoff_ms": int(os.getenv("TTS_INITIAL_BACKOFF_MS", "1000")),
}

# Anki configuration
ANKI_CONFIG = {
    "model_name": "Quick Cards Basic",
    "reversed_suffix": " (Reversed)",
    "default_tags": ["quick_cards"],
}


def sanitize_filename(name: str) -> str:
    """
    Turn a deck name into a safe file stem.

    Whitespace runs become underscores; path separators and other characters
    that are not portable in file names are removed.
    """
    name = re.sub(r"\s+", "_", name.strip())
    name = re.sub(r'[\\/:*?"<>|]', "", name)
    return name or "deck"


# Logging configuration
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "standard",
            "stream": "ext://sys.stdout"
        },
        "file": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "standard",
            "filename": str(LOGS_DIR / "app.log"),
            "mode": "a"
        }
    },
    "loggers": {
        "": {  # root logger
            "handlers": ["console", "file"],
            "level": "DEBUG",
            "propagate": True
        }
    }
}
