"""Configuration management for EcoLakbay AI services."""
import os
import logging
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConfigurationError(Exception):
    """Raised when a required credential or setting is missing."""


# API Keys
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "https://www.eco-lakbay.com,https://eco-lakbay.com,"
    "https://eco-lakbay-adventures-hub.vercel.app,"
    "http://localhost:3000,http://localhost:5173"
).split(",")

# Model Configuration
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini")
GEMINI_API_BASE_URL = os.getenv(
    "GEMINI_API_BASE_URL",
    "https://generativelanguage.googleapis.com/v1beta"
)
CHAT_MODEL = os.getenv("CHAT_MODEL", "gemini-1.5-flash")
QUIZ_MODEL = os.getenv("QUIZ_MODEL", "gemini-1.5-flash")
TRIP_PLAN_MODEL = os.getenv("TRIP_PLAN_MODEL", "gemini-1.5-pro")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

# Geocoding Configuration
GEOCODING_API_URL = os.getenv(
    "GEOCODING_API_URL",
    "https://maps.googleapis.com/maps/api/geocode/json"
)
REGION_QUALIFIER = os.getenv("REGION_QUALIFIER", "Pampanga, Philippines")
REGION_BIAS = os.getenv("REGION_BIAS", "ph")

# Chat Configuration
MAX_HISTORY_TURNS = int(os.getenv("MAX_HISTORY_TURNS", "10"))

# HTTP Configuration
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "60.0"))

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def required_credentials(provider: str = LLM_PROVIDER) -> List[str]:
    """
    Names of the credentials the service needs for a language-model provider.

    Args:
        provider: "gemini" or "groq"

    Returns:
        List of environment variable names

    Raises:
        ConfigurationError: If the provider is unknown
    """
    if provider == "gemini":
        model_keys = ["GEMINI_API_KEY"]
    elif provider == "groq":
        model_keys = ["GROQ_API_KEY"]
    else:
        raise ConfigurationError(f"Unknown LLM_PROVIDER: {provider!r} (expected 'gemini' or 'groq')")

    return model_keys + ["GOOGLE_MAPS_API_KEY", "SUPABASE_URL", "SUPABASE_KEY"]


def validate_configuration(provider: str = LLM_PROVIDER) -> None:
    """
    Check every required credential once, at service start.

    Raises:
        ConfigurationError: Naming every missing credential
    """
    current = globals()
    missing = [name for name in required_credentials(provider) if not current.get(name)]
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}"
        )
