import os


class Settings:
    def __init__(self):
        self.app_name = "Inscribo CRM"
        self.api_version = "1.0.0"
        self.environment = os.getenv("INSCRIBO_ENVIRONMENT", "development")
        self.secret_key = os.getenv("INSCRIBO_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("INSCRIBO_ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("INSCRIBO_DATABASE_URL", "sqlite:///./inscribo.db")
        self.log_level = os.getenv("INSCRIBO_LOG_LEVEL", "INFO").upper()
        # Attempts for one logical write before TransientStoreFailure is raised
        self.store_retry_attempts = max(1, int(os.getenv("INSCRIBO_STORE_RETRY_ATTEMPTS", "3")))
        self.webhook_timeout_seconds = float(os.getenv("INSCRIBO_WEBHOOK_TIMEOUT_SECONDS", "5"))


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
