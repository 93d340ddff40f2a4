import os
import json
import logging
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI
from google.oauth2.credentials import Credentials
from google.auth.transport.requests import Request as GoogleRequest

from .errors import MisconfiguredService

# Project root = one level above this file's directory
BASE_DIR = os.path.dirname(os.path.dirname(__file__))

# Look for apikey.env at project root
env_path = os.path.join(BASE_DIR, "apikey.env")
load_dotenv(env_path)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# =========================
# OPENAI / GENERATION CONFIG
# =========================

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "1.5"))
RUN_TIMEOUT_SECONDS = float(os.getenv("RUN_TIMEOUT_SECONDS", "90"))

# Delete the uploaded file, assistant and thread once a request is done
CLEANUP_UPSTREAM_RESOURCES = _env_flag("CLEANUP_UPSTREAM_RESOURCES", True)
# Also validate every lesson plan entry, not only the top-level mapping (opt-in)
STRICT_PLAN_VALIDATION = _env_flag("STRICT_PLAN_VALIDATION", False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Base URL the terminal client talks to
LESSON_PLANNER_API = os.getenv("LESSON_PLANNER_API", "http://127.0.0.1:8000")

_client: Optional[OpenAI] = None


def get_openai_client() -> OpenAI:
    """
    Return the shared OpenAI client, creating it on first use.
    Raises MisconfiguredService when no API key is configured.
    """
    global _client

    if not OPENAI_API_KEY:
        raise MisconfiguredService()

    if _client is None:
        _client = OpenAI(api_key=OPENAI_API_KEY)
    return _client


def setup_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# =========================
# GOOGLE CALENDAR CONFIG
# =========================

SCOPES = ["https://www.googleapis.com/auth/calendar"]

CAL_CLIENT_JSON = os.getenv("CAL_CLIENT_JSON") or os.path.join(
    os.path.dirname(__file__), "credentials.json"
)

CALENDAR_ID = os.getenv("CALENDAR_ID", "primary")

# Unset: the Google token lives in memory only and is gone on restart
CAL_TOKEN_JSON: Optional[str] = os.getenv("CAL_TOKEN_JSON") or None

FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
OAUTH_REDIRECT_URI = os.getenv(
    "OAUTH_REDIRECT_URI",
    "http://localhost:8000/api/auth/google/callback",
)

# =========================
# SINGLE-USER DEV GLOBALS
# =========================

GLOBAL_CREDS_JSON: Optional[str] = None  # serialized credentials
GLOBAL_EMAIL: Optional[str] = None       # calendar email (primary id)
GLOBAL_CALENDAR_ID: Optional[str] = None # calendar id actually used

# Pick up a token persisted by an earlier run, when persistence is enabled
if CAL_TOKEN_JSON and os.path.exists(CAL_TOKEN_JSON):
    try:
        with open(CAL_TOKEN_JSON, "r", encoding="utf-8") as f:
            GLOBAL_CREDS_JSON = f.read()
    except OSError:
        GLOBAL_CREDS_JSON = None


def store_google_creds(
    creds_json: str,
    email: Optional[str] = None,
    calendar_id: Optional[str] = None,
) -> None:
    """Remember the logged-in user's credentials, on disk too if CAL_TOKEN_JSON is set."""
    global GLOBAL_CREDS_JSON, GLOBAL_EMAIL, GLOBAL_CALENDAR_ID

    GLOBAL_CREDS_JSON = creds_json
    GLOBAL_EMAIL = email
    GLOBAL_CALENDAR_ID = calendar_id

    if not CAL_TOKEN_JSON:
        return
    try:
        with open(CAL_TOKEN_JSON, "w", encoding="utf-8") as f:
            f.write(creds_json)
    except OSError:
        logging.getLogger(__name__).warning(
            "Could not persist Google token to %s", CAL_TOKEN_JSON
        )


def clear_google_creds() -> None:
    global GLOBAL_CREDS_JSON, GLOBAL_EMAIL, GLOBAL_CALENDAR_ID

    GLOBAL_CREDS_JSON = None
    GLOBAL_EMAIL = None
    GLOBAL_CALENDAR_ID = None

    if CAL_TOKEN_JSON and os.path.exists(CAL_TOKEN_JSON):
        try:
            os.remove(CAL_TOKEN_JSON)
        except OSError:
            logging.getLogger(__name__).warning(
                "Could not remove Google token at %s", CAL_TOKEN_JSON
            )


def get_google_creds_single_user() -> Credentials:
    """
    Return Credentials for the single logged-in user (dev mode).
    Uses GLOBAL_CREDS_JSON, refreshes if needed, and updates the stored JSON.
    """
    global GLOBAL_CREDS_JSON

    if not GLOBAL_CREDS_JSON:
        raise RuntimeError("Not connected to Google")

    info = json.loads(GLOBAL_CREDS_JSON)
    creds = Credentials.from_authorized_user_info(info, SCOPES)

    if not creds.valid:
        if creds.expired and creds.refresh_token:
            creds.refresh(GoogleRequest())
            GLOBAL_CREDS_JSON = creds.to_json()
        else:
            raise RuntimeError("Google credentials expired")

    return creds
