from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Form Export API"
    app_env: str = "development"
    log_level: str = "INFO"
    request_id_header: str = "X-Request-ID"

    form_id: str = ""
    form_provider: str = "google"  # google|file
    snapshot_root: str = "data/snapshots"
    # Local directory or s3://bucket/prefix. Empty disables persistence.
    export_location: str = "data/exports"
    # IANA zone name used for export file timestamps; empty means the host's local zone.
    export_timezone: str = ""

    google_application_credentials: str = ""
    google_forms_api_base: str = "https://forms.googleapis.com/v1"
    google_drive_api_base: str = "https://www.googleapis.com/drive/v3"
    google_request_timeout_seconds: float = 30.0
    include_editor_emails: bool = True
    download_images: bool = True

    aws_region: str = "us-east-1"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
