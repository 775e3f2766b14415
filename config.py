"""
Configuration for the kitten intake link state
"""
import os

# Share link wire format
WIRE_VERSION = 1
STATE_PARAM = "k"
FLAG_WIDTH = 2  # symbols per flag string (12 usable bits)

# Durable store (survives across sessions)
DB_PATH = os.environ.get("KITTEN_INTAKE_DB", "kitten_intake.db")
DURABLE_KEY = "cat-intake-form-data"
STORAGE_VERSION = "2.0"

# Session store (lives as long as the viewing session)
BACKUP_KEY = "cat-intake-form-backup"
VIEWING_SHARED_KEY = "cat-intake-url-loaded"

# Address bar updates while typing are debounced (seconds)
URL_UPDATE_DELAY = 0.3

# Where share links point to
BASE_URL = os.environ.get("KITTEN_INTAKE_BASE_URL", "https://kitten-intake.example.org/")

# ShelterLuv sync (disabled until an API key is configured)
SHELTERLUV_CONFIG_KEY = "shelter-luv-config"
SHELTERLUV_CONFIG_VERSION = "1.0"
SHELTERLUV_CONFIG = {
  "base_url": os.environ.get("SHELTERLUV_BASE_URL", "https://www.shelterluv.com/api/v1"),
  "api_key": os.environ.get("SHELTERLUV_API_KEY", ""),
  "shelter_slug": os.environ.get("SHELTERLUV_SHELTER_SLUG", ""),
  "auto_sync": os.environ.get("SHELTERLUV_AUTO_SYNC", "").lower() in ("1", "true", "yes"),
  "timeout": 30,
}

# Weight breakpoints (lb) for the ShelterLuv size category
SIZE_CATEGORIES = [
  (2, "Tiny"),
  (5, "Small"),
  (10, "Medium"),
]
SIZE_CATEGORY_MAX = "Large"

# User agent for API requests
USER_AGENT = "KittenIntake/1.0 (+https://kitten-intake.example.org/)"
