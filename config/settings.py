"""
Configuration settings for the contract query engine
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Project root directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Logging Settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
# Optional log file, relative to BASE_DIR. Console only when empty.
LOG_FILE = os.getenv("LOG_FILE", "")

# API Settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_RELOAD = os.getenv("API_RELOAD", "false").lower() == "true"

# Query Engine Settings
# JSON file overriding tables from config/query_rules.py (optional)
QUERY_RULES_FILE = os.getenv("QUERY_RULES_FILE", "")
QUERY_CACHE_SIZE = int(os.getenv("QUERY_CACHE_SIZE", "1000"))
MAX_BATCH_SIZE = int(os.getenv("MAX_BATCH_SIZE", "100"))

# Optional spaCy enrichment (pip install .[nlp])
SPACY_MODEL = os.getenv("SPACY_MODEL", "en_core_web_sm")
