import os


def get_settings_module() -> str:
    """Dotted path of the settings module selected by ``APP_ENV`` (default: development)."""
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "bizsuite.config.production"

    if env in {"test", "testing"}:
        return "bizsuite.config.testing"

    return "bizsuite.config.development"
