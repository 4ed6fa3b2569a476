"""Global configuration — loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class ShowcaseSettings(BaseSettings):
    http_host: str = "0.0.0.0"
    http_port: int = 8000
    log_level: str = "INFO"

    # Datasources
    db_path: Path = Path("data/showcase.db")
    documents_path: Path = Path("data/documents.db")
    redis_url: str = "redis://localhost:6379/0"  # empty disables the cache

    # Upstream services
    payment_addr: str = "http://localhost:9000"
    payment_timeout_seconds: float = 5.0

    # Object storage (S3-compatible, e.g. MinIO)
    s3_endpoint: str = ""
    s3_bucket: str = "package"
    s3_region: str = "us-east-1"
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_browse_prefix: str = "software"

    # Cron: six fields, seconds last
    cron_schedule: str = "* * * * * */10"

    # WebSocket
    ws_subprotocols: str = "chat,binary"
    ws_max_size: int = 2048
    ws_compression: bool = True

    # Static files
    static_dir: Path = Path("static")
    root_redirect: str = "/static/"

    # Migrations
    migration_lock_timeout_seconds: float = 300.0
    migration_lock_poll_seconds: float = 0.5
    migration_lock_stale_seconds: float = 900.0

    model_config = {"env_prefix": "SHOWCASE_"}


settings = ShowcaseSettings()
