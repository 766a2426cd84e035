"""
Configuration settings for the Scholarship Evaluation Service
"""
from typing import List, Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017", env="MONGODB_URL")
    mongodb_db_name: str = Field(default="scholarship_db", env="MONGODB_DB_NAME")
    rules_collection: str = Field(default="scholarship_rules", env="RULES_COLLECTION")
    applications_collection: str = Field(default="applications", env="APPLICATIONS_COLLECTION")
    documents_bucket: str = Field(default="documents", env="DOCUMENTS_BUCKET")

    # Evaluation engine: "ai" calls the reasoning service, "mock" runs offline
    evaluation_engine: Literal["ai", "mock"] = Field(default="ai", env="EVALUATION_ENGINE")

    # Reasoning service (OpenAI-compatible chat completions, Groq by default)
    llm_api_key: Optional[str] = Field(default=None, env="LLM_API_KEY")
    llm_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        env="LLM_BASE_URL"
    )
    llm_model: str = Field(default="llama-3.3-70b-versatile", env="LLM_MODEL")
    llm_temperature: float = Field(default=0.1, env="LLM_TEMPERATURE")
    llm_max_tokens: int = Field(default=4000, env="LLM_MAX_TOKENS")
    llm_timeout_seconds: float = Field(default=60.0, env="LLM_TIMEOUT_SECONDS")

    # Pipeline deadlines and retry policy
    extraction_timeout_seconds: float = Field(default=120.0, env="EXTRACTION_TIMEOUT_SECONDS")
    evaluation_timeout_seconds: float = Field(default=90.0, env="EVALUATION_TIMEOUT_SECONDS")
    evaluation_max_attempts: int = Field(default=3, ge=1, env="EVALUATION_MAX_ATTEMPTS")
    evaluation_retry_delay_seconds: float = Field(default=1.0, ge=0, env="EVALUATION_RETRY_DELAY_SECONDS")

    # OCR Configuration
    ocr_language: str = Field(default="eng", env="OCR_LANGUAGE")
    tesseract_cmd: Optional[str] = Field(default=None, env="TESSERACT_CMD")

    # Application Configuration
    app_name: str = Field(default="Scholarship Evaluation Service", env="APP_NAME")
    app_version: str = Field(default="1.0.0", env="APP_VERSION")
    debug: bool = Field(default=False, env="DEBUG")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # File Upload Configuration
    max_file_size: int = Field(default=10485760, env="MAX_FILE_SIZE")  # 10MB
    allowed_extensions: str = Field(default=".jpg,.jpeg,.png,.pdf,.txt", env="ALLOWED_EXTENSIONS")
    upload_dir: str = Field(default="uploads", env="UPLOAD_DIR")

    # API Configuration
    api_prefix: str = Field(default="/api", env="API_PREFIX")
    cors_origins: str = Field(default="http://localhost:5173", env="CORS_ORIGINS")

    def get_allowed_extensions_list(self) -> List[str]:
        """Get allowed extensions as a list"""
        if ',' in self.allowed_extensions:
            return [ext.strip().lower() for ext in self.allowed_extensions.split(',')]
        return [self.allowed_extensions.strip().lower()]

    def get_cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        if ',' in self.cors_origins:
            return [origin.strip() for origin in self.cors_origins.split(',')]
        return [self.cors_origins.strip()]

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Create global settings instance
settings = Settings()
