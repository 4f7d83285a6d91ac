from pydantic_settings import BaseSettings, SettingsConfigDict

_MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "piiscan"
    db_username: str = "piiscan"
    db_password: str = "secret"

    queue_backend: str = "postgres"
    file_worker_count: int = 3
    max_job_attempts: int = 3
    job_poll_interval_seconds: int = 5
    job_lease_seconds: int = 300
    file_retry_base_seconds: float = 2.0

    max_archive_size_bytes: int = 100 * _MIB
    max_archive_entries: int = 1000
    max_entry_size_bytes: int = 100 * _MIB
    max_total_uncompressed_bytes: int = 500 * _MIB
    max_compression_ratio: float = 100.0
    extraction_chunk_size: int = 64 * 1024

    context_radius: int = 60
    sensitive_keywords: str = (
        "confidencial,confidential,secret,private,backup,export,database,sql"
    )

    risk_provider: str = "openai"
    risk_temperature: float = 0.1
    risk_batch_size: int = 5
    risk_batch_delay_seconds: float = 0.1
    risk_max_retries: int = 2
    risk_retry_base_seconds: float = 0.5

    risk_openai_api_key: str = ""
    risk_openai_model_name: str = "gpt-4o"
    risk_openai_timeout_seconds: int = 30

    risk_openai_compatible_api_key: str = ""
    risk_openai_compatible_model_name: str = ""
    risk_openai_compatible_base_url: str = ""
    risk_openai_compatible_timeout_seconds: int = 30

    risk_openrouter_api_key: str = ""
    risk_openrouter_model_name: str = ""
    risk_groq_api_key: str = ""
    risk_groq_model_name: str = ""
    risk_ollama_api_key: str = "ollama"
    risk_ollama_model_name: str = ""

    max_recommendations: int = 10

    antivirus_enabled: bool = False
    clamdscan_path: str = "clamdscan"
    antivirus_timeout_seconds: int = 30

    progress_webhook_url: str = ""
    workflow_webhook_url: str = ""
    webhook_timeout_seconds: float = 30.0

    def sensitive_keyword_list(self) -> list[str]:
        """Return the configured sensitivity keywords, lowercased and stripped."""
        return [
            word.strip().lower()
            for word in self.sensitive_keywords.split(",")
            if word.strip()
        ]
