# recruitflow/core/config.py
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Union


class FirebaseConfig(BaseModel):
    """Service-account fields, read from FIREBASE_CONFIG__<field> variables"""

    type: str = "service_account"
    project_id: Optional[str] = None
    private_key_id: Optional[str] = None
    private_key: str = ""
    client_email: Optional[str] = None
    client_id: Optional[str] = None
    auth_uri: str = "https://accounts.google.com/o/oauth2/auth"
    token_uri: str = "https://oauth2.googleapis.com/token"
    auth_provider_x509_cert_url: str = "https://www.googleapis.com/oauth2/v1/certs"
    client_x509_cert_url: Optional[str] = None

    def credentials(self) -> dict:
        """Certificate dict for firebase_admin; env files carry the key with literal \\n"""
        return {**self.model_dump(), "private_key": self.private_key.replace("\\n", "\n")}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # API Settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Recruitflow API"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Interview process and recruitment pipeline service"

    # OpenAI (question generation and answer analysis)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    CONTENT_TIMEOUT_SECONDS: float = 30.0

    # Interview Settings
    QUESTION_COUNT: int = 5
    MAX_STAGES: int = 3
    PASS_THRESHOLD: int = 70

    # Entity store: "json" keeps one file per record kind under DATA_DIR,
    # "firestore" uses one collection per kind
    STORE_BACKEND: str = "json"
    DATA_DIR: str = "data"

    # only read when STORE_BACKEND == "firestore"
    FIREBASE_CONFIG: FirebaseConfig = Field(default_factory=FirebaseConfig)

    # CORS Settings
    BACKEND_CORS_ORIGINS: Union[str, List[str]] = ["*"]

    # Application Settings
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @property
    def cors_origins(self) -> List[str]:
        """Get CORS origins as a list"""
        if isinstance(self.BACKEND_CORS_ORIGINS, str):
            if self.BACKEND_CORS_ORIGINS == "*":
                return ["*"]
            return [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",")]
        return self.BACKEND_CORS_ORIGINS


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings instance (singleton pattern)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
