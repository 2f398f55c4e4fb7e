import json
import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module, default 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


DEFAULT_RESTAURANT_NETWORKS = {
    "bartlesville": {
        "name": "Bartlesville",
        "network_name": "Restaurant-Bartlesville",
        "cidr": "192.168.1.0/24",
    },
    "tulsa": {
        "name": "Tulsa",
        "network_name": "Restaurant-Tulsa",
        "cidr": "192.168.2.0/24",
    },
}


def load_restaurant_networks() -> dict:
    """RESTAURANT_NETWORKS env var holds a JSON object keyed by location id."""
    raw = os.getenv("RESTAURANT_NETWORKS", "").strip()
    if not raw:
        return dict(DEFAULT_RESTAURANT_NETWORKS)
    return json.loads(raw)
