from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "extra": "ignore",
        "env_prefix": "VENUS_",
        "case_sensitive": False,
    }

    # Gemini models
    analysis_model: str = "gemini-3-flash-preview"
    advice_model: str = "gemini-3-flash-preview"
    simulation_model: str = "gemini-2.5-flash-image"

    # Credential storage (single key in a local JSON file)
    credential_store_path: str = "~/.venus/storage.json"
    credential_storage_key: str = "venus_gemini_api_key"
    credential_prefix: str = "AIza"

    # Capture
    max_image_dimension: int = 1280
    jpeg_quality: int = 85

    # Session
    status_interval_seconds: float = 2.0

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_file: str = ""


settings = Settings()
