import json

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PORT: int = 3007

    PROJECT_NAME: str = "Payvost Admin Stats Service"
    SERVICE_NAME: str = "admin-stats-service"
    VERSION: str = "1.0.0"

    BACKEND_CORS_ORIGINS: str = '["*"]'

    # Document store backend: "firestore" in deployed environments, "memory" for local runs
    STORE_BACKEND: str = "firestore"

    # Firebase Admin credentials, tried in this order; falls back to application default credentials
    FIREBASE_SERVICE_ACCOUNT_KEY: str = ""
    FIREBASE_SERVICE_ACCOUNT_KEY_BASE64: str = ""
    FIREBASE_PROJECT_ID: str = ""

    # Number of users scanned in parallel; 1 keeps the scan strictly sequential
    SCAN_CONCURRENCY: int = 1

    ACTIVE_USER_WINDOW_DAYS: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def cors_origins(self) -> list[str]:
        if isinstance(self.BACKEND_CORS_ORIGINS, str):
            try:
                parsed: list[str] = json.loads(self.BACKEND_CORS_ORIGINS)
                return parsed
            except json.JSONDecodeError:
                return ["*"]
        return self.BACKEND_CORS_ORIGINS

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


settings = Settings()
