import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    max_upload_size_mb: int = 50
    temp_dir: Path = Path(tempfile.gettempdir()) / "labreport"

    min_text_length: int = 50
    protection_scan_bytes: int = 20000
    split_pages_per_part: int = 5
    stage_timeout_seconds: int = 120
    common_passwords: list[str] = [
        "",
        "1234",
        "admin",
        "password",
        "pdf",
        "exame",
        "laudo",
        "laboratorio",
        "123456",
    ]

    pdf_engine: str = "pdfplumber"

    ghostscript_enabled: bool = True
    ghostscript_binary: str = "gs"
    ghostscript_timeout_seconds: int = 60

    ocr_enabled: bool = True
    ocr_api_url: str = "https://api.ocr.space/parse/image"
    ocr_api_key: str = "helloworld"
    ocr_language: str = "por"
    ocr_max_part_kb: int = 1000
    ocr_reduce_threshold_kb: int = 950
    ocr_timeout_seconds: int = 60
    ocr_max_concurrency: int = 3

    ai_provider: str = "openai"
    ai_api_key: str = ""
    ai_model_name: str = "gpt-3.5-turbo"
    ai_base_url: str = ""
    ai_timeout_seconds: int = 30
    ai_temperature: float = 0.1

    summary_chunk_tokens: int = 3000
    summary_chars_per_token: int = 4
    summary_max_tokens: int = 1000
    summary_max_concurrency: int = 4
    name_max_tokens: int = 100

    blob_store_url: str = ""
    blob_offload_threshold_mb: int = 3
    blob_timeout_seconds: int = 30
    blob_max_retries: int = 3
    blob_backoff_seconds: float = 2.0

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def summary_chunk_chars(self) -> int:
        return self.summary_chunk_tokens * self.summary_chars_per_token
