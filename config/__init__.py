import os

_MODULES = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module(env: str = None) -> str:
    """Dotted settings module for APP_ENV; anything unrecognised is development."""
    env = (env or os.getenv("APP_ENV") or "development").strip().lower()
    return _MODULES.get(env, "config.development")
