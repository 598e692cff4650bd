"""Configuration module for FactSage"""

import os
from pathlib import Path

# Base directories
BASE_DIR = Path(os.environ.get("FACTSAGE_HOME", Path.home() / ".factsage"))
DATA_DIR = BASE_DIR / "data"
KNOWLEDGE_DIR = DATA_DIR / "knowledge"

# Store settings
KNOWLEDGE_STORE_FILE = KNOWLEDGE_DIR / "facts.json"
STORE_TIMEOUT = float(os.environ.get("FACTSAGE_STORE_TIMEOUT", 5.0))  # seconds per store call

# Retrieval settings
TRUSTED_SOURCE = os.environ.get("FACTSAGE_TRUSTED_SOURCE", "user_teaching")
MIN_CONTENT_LENGTH = 20   # Shorter candidates carry no useful answer
MAX_CONTENT_LENGTH = 500  # Longer candidates are page dumps, not facts
DEFAULT_CONFIDENCE = 0.8  # Used when a retrieved fact has no confidence

# Read-through retrieval cache (keyed by normalized query)
RETRIEVAL_CACHE_SIZE = 128
RETRIEVAL_CACHE_TTL = 300  # seconds

# Classifier settings
HISTORY_LIMIT = 500  # Max stored facts consulted for the historical boost

# Arithmetic table seeding
SEED_SOURCE = "basic_math"
BASE_KNOWLEDGE_SOURCE = "base_knowledge"
SEED_MAX_OPERAND = 10

# CLI settings
CLI_PROMPT = "You"
CLI_ASSISTANT = "FactSage"
CLI_WIDTH = 80
