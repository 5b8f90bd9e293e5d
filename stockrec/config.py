"""Central configuration loader for stockrec."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the stockrec/ directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


def load_settings() -> dict:
    """Load settings from configs/settings.yaml (empty dict when missing)."""
    settings_path = PROJECT_ROOT / "configs" / "settings.yaml"
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()


# --- Paths ---
class Paths:
    ROOT = PROJECT_ROOT
    DATA = PROJECT_ROOT / "data"
    # Relative paths resolve against the project root
    SIGNAL_DB = PROJECT_ROOT / os.getenv(
        "STOCKREC_SIGNAL_DB",
        SETTINGS.get("storage", {}).get("signal_db", "data/signal_log.db"),
    )


LOG_LEVEL = os.getenv("STOCKREC_LOG_LEVEL", SETTINGS.get("app", {}).get("log_level", "INFO"))
