# config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file.
load_dotenv()

DEFAULT_LOCATION = {"latitude": 23.588, "longitude": 58.383}

_config_cache = None


def _split_list(value):
    """Parses a comma separated env value into a list of lowercase tokens."""
    if not value:
        return []
    return [item.strip().lower() for item in value.split(",") if item.strip()]


def load_config():
    """
    Loads configuration from environment variables and returns a dictionary.
    """
    output_dir = os.getenv("OUTPUT_DIR", "./output")

    location_str = os.getenv("LOCATION_DATA", "23.588, 58.383")
    try:
        lat_str, lon_str = location_str.split(",")
        LOCATION_DATA = {"latitude": float(lat_str), "longitude": float(lon_str)}
    except Exception:
        # Fallback to defaults if parsing fails
        LOCATION_DATA = dict(DEFAULT_LOCATION)

    config = {
        # General Settings
        "DEBUG_MODE": os.getenv("DEBUG_MODE", "False").lower() == "true",
        "OUTPUT_DIR": output_dir,
        "DATABASE_PATH": os.getenv(
            "DATABASE_PATH", str(Path(output_dir) / "records.db")
        ),
        "PREFERENCES_PATH": os.getenv(
            "PREFERENCES_PATH", str(Path(output_dir) / "preferences.yaml")
        ),
        "EXPORT_DIR": os.getenv("EXPORT_DIR", str(Path(output_dir) / "exports")),
        "RECORD_STORE_POLL_SECONDS": float(os.getenv("RECORD_STORE_POLL_SECONDS", 1.0)),

        # Positioning
        "LOCATION_DATA": LOCATION_DATA,
        "LOCATION_SERVICE_ENABLED": os.getenv("LOCATION_SERVICE_ENABLED", "True").lower() == "true",
        "LOCATION_ACCURACY": os.getenv("LOCATION_ACCURACY", "best"),
        "LOCATION_TIMEOUT_SECONDS": float(os.getenv("LOCATION_TIMEOUT_SECONDS", 30)),

        # Media Settings
        "FILE_ACCESS_TIMEOUT_SECONDS": float(os.getenv("FILE_ACCESS_TIMEOUT_SECONDS", 10)),
        "MAX_VIDEO_BYTES": int(os.getenv("MAX_VIDEO_BYTES", 50 * 1024 * 1024)),
        "PLATFORM": os.getenv("PLATFORM", "android").lower(),
        "DENIED_PERMISSIONS": _split_list(os.getenv("DENIED_PERMISSIONS", "")),
        "PERMANENTLY_DENIED_PERMISSIONS": _split_list(
            os.getenv("PERMANENTLY_DENIED_PERMISSIONS", "")
        ),

        # Upload Endpoint
        "UPLOAD_BASE_URL": os.getenv("UPLOAD_BASE_URL", "https://api.cloudinary.com/v1_1"),
        "UPLOAD_CLOUD_NAME": os.getenv("UPLOAD_CLOUD_NAME", "dsgd6l9gt"),
        "UPLOAD_PRESET": os.getenv("UPLOAD_PRESET", "send_pictures"),
        "UPLOAD_TIMEOUT_SECONDS": float(os.getenv("UPLOAD_TIMEOUT_SECONDS", 120)),

        # Export / Display
        "DISPLAY_TZ_OFFSET_HOURS": float(os.getenv("DISPLAY_TZ_OFFSET_HOURS", 4)),

        # Web Interface
        "WEB_HOST": os.getenv("WEB_HOST", "0.0.0.0"),
        "WEB_PORT": int(os.getenv("WEB_PORT", 8050)),
    }
    return config


def get_config():
    """Returns the process-wide configuration, loading it on first use."""
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache


def reset_config_cache():
    """Drops the cached configuration so the next get_config() reloads it."""
    global _config_cache
    _config_cache = None


if __name__ == "__main__":
    # For testing purposes, print the configuration
    config = load_config()
    from pprint import pprint

    pprint(config)
