import os

from dotenv import load_dotenv

# Load from .env if it exists (useful for local development)
load_dotenv()

LOGGING_LEVEL = os.getenv("LOGGING_LEVEL", "").upper()

# Provider selection: "openai" or "gemini" (anything else falls back to gemini)
AI_PROVIDER = os.getenv("AI_PROVIDER", "gemini")

# OpenAI-compatible defaults (used when the config file has no instances)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

# Gemini defaults
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Snapshot written by the settings screen; we only ever read it
CONFIG_FILE_PATH = os.getenv(
    "ERRORBOOK_CONFIG_FILE", os.path.join("config", "app-config.json")
)

# --- CONFIG --- retry / timeouts
AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "2"))  # 3 attempts total
AI_RETRY_BASE_DELAY_S = float(os.getenv("AI_RETRY_BASE_DELAY_S", "1.0"))
AI_RETRY_MAX_DELAY_S = float(os.getenv("AI_RETRY_MAX_DELAY_S", "10.0"))
AI_REQUEST_TIMEOUT_S = float(os.getenv("AI_REQUEST_TIMEOUT_S", "120.0"))
AI_MAX_TOKENS = 4096

# === CONFIGURATION === Subjects
SUBJECTS = [
    "数学",
    "物理",
    "化学",
    "生物",
    "英语",
    "语文",
    "历史",
    "地理",
    "政治",
    "其他",
]
DEFAULT_SUBJECT = "其他"
DIFFICULTY_LEVELS = ["easy", "medium", "hard", "harder"]
DEFAULT_DIFFICULTY = "medium"
