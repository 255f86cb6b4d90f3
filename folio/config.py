"""Folio Media Library Configuration."""

import secrets
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    server_name: str = "Folio Media Library"
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    data_dir: Path = Path.home() / "folio" / "data"
    storage_dir: Path = Path.home() / "folio" / "media"

    # Database
    db_path: Path = Path.home() / "folio" / "data" / "folio.db"

    # Object store
    media_url_prefix: str = "/media"

    # JWT
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    allowed_mime_types: list[str] = ["image/jpeg", "image/png", "image/webp"]
    thumbnail_size: int = 400

    # Analytics
    analytics_salt: str = ""
    analytics_window_days: int = 7

    model_config = {"env_prefix": "FOLIO_"}

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.storage_dir, self.db_path.parent]:
            d.mkdir(parents=True, exist_ok=True)

    def ensure_secrets(self) -> None:
        """Fill in the JWT secret and analytics salt once per install.

        Generated values are kept in ``data_dir/.secrets`` so tokens stay valid
        and viewer hashes stay comparable across restarts. Values given through
        the environment win and are never written out.
        """
        secrets_file = self.data_dir / ".secrets"
        saved = dict(
            line.split("=", 1)
            for line in (secrets_file.read_text().splitlines() if secrets_file.exists() else [])
            if "=" in line
        )

        filled = {}
        for name in ("jwt_secret", "analytics_salt"):
            if getattr(self, name):
                continue
            value = saved.get(name) or secrets.token_urlsafe(32)
            setattr(self, name, value)
            filled[name] = value

        if any(saved.get(k) != v for k, v in filled.items()):
            saved.update(filled)
            secrets_file.write_text("".join(f"{k}={v}\n" for k, v in saved.items()))


settings = Settings()
settings.ensure_dirs()
settings.ensure_secrets()
