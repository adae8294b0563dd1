import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=ROOT / ".env", override=False)

HEADLESS = os.getenv("HEADLESS", "true").lower() == "true"
CHROME_USER_DATA_DIR = os.getenv("CHROME_USER_DATA_DIR")
CHROME_PROFILE_DIRECTORY = os.getenv("CHROME_PROFILE_DIRECTORY", "Default")
CACHE_DIR = Path(os.getenv("CACHE_DIR", str(ROOT / ".cache")))
CACHE_DIR.mkdir(parents=True, exist_ok=True)

# Neutral page visited before the target, and the origin cookies are set on
ENTRY_URL = os.getenv("ENTRY_URL", "https://www.linkedin.com/feed/")
COOKIE_ORIGIN = os.getenv("COOKIE_ORIGIN", "https://www.linkedin.com/")

# --- Task defaults (overridden per task by the input file) ---
MIN_DELAY_MS = int(os.getenv("MIN_DELAY_MS", "3000"))
MAX_DELAY_MS = int(os.getenv("MAX_DELAY_MS", "11000"))
RETRY_BUDGET = int(os.getenv("RETRY_BUDGET", "3"))
PAGE_BUDGET = int(os.getenv("PAGE_BUDGET", "50"))

# --- Backoff ---
BLOCK_BACKOFF_SECONDS = float(os.getenv("BLOCK_BACKOFF_SECONDS", "120"))
BLOCK_BACKOFF_JITTER_SECONDS = float(os.getenv("BLOCK_BACKOFF_JITTER_SECONDS", "60"))
ERROR_BACKOFF_SECONDS = float(os.getenv("ERROR_BACKOFF_SECONDS", "60"))

# --- Waits ---
PROBE_TIMEOUT_SECONDS = float(os.getenv("PROBE_TIMEOUT_SECONDS", "2"))
CONTENT_WAIT_SECONDS = float(os.getenv("CONTENT_WAIT_SECONDS", "25"))
NEXT_PAGE_TIMEOUT_SECONDS = float(os.getenv("NEXT_PAGE_TIMEOUT_SECONDS", "45"))
PAGE_LOAD_TIMEOUT = int(os.getenv("PAGE_LOAD_TIMEOUT", "30"))

# --- Extraction caps ---
EXPERIENCE_CAP = int(os.getenv("EXPERIENCE_CAP", "10"))
EDUCATION_CAP = int(os.getenv("EDUCATION_CAP", "5"))
SKILL_CAP = int(os.getenv("SKILL_CAP", "20"))
SEARCH_RESULT_CAP = int(os.getenv("SEARCH_RESULT_CAP", "10"))
