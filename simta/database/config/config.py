"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Every field has a local-development default, so the service boots (against a
  SQLite file, with WhatsApp disabled) without any environment at all.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from simta.database.config.config import settings

# Example
db_host = settings.DB_HOST
whatsapp_on = settings.WHATSAPP_ENABLED

Security
--------
- Never commit secrets or the `.env` file to source control.
- Override `SECRET_KEY` in every deployed environment.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ----- Database -----
    DB_DRIVER_NAME: str = Field("sqlite", description="SQLAlchemy driver name (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Port of the database server.")
    DB_DATABASE_NAME: str = Field("simta.db", description="Name of the database (file path for SQLite).")
    DB_ECHO: bool = Field(False, description="Echo emitted SQL to the log.")

    # ----- Auth (token verification only; issuance lives in the identity service) -----
    SECRET_KEY: str = Field("change-me", description="Secret key used to verify signed access tokens.")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm (e.g., `HS256`).")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24, description="Lifetime of access tokens minted by `create_access_token`.")

    # ----- HTTP -----
    FRONTEND_URL: str = Field("http://localhost:5173", description="Allowed CORS origin of the frontend client.")

    # ----- Uploads -----
    UPLOAD_DIR: str = Field("uploads", description="Root directory for uploaded documents.")
    MAX_FILE_SIZE_MB: int = Field(10, description="Maximum accepted upload size in megabytes.")

    # ----- WhatsApp notifications -----
    WHATSAPP_ENABLED: bool = Field(False, description="Master switch for outbound WhatsApp messages.")
    WHATSAPP_PROVIDER: Literal["fonnte", "meta"] = Field("fonnte", description="WhatsApp gateway provider.")
    WHATSAPP_API_TOKEN: str = Field("", description="API token of the WhatsApp provider.")
    WHATSAPP_SENDER: str = Field("", description="Sender phone-number id (Meta Cloud API only).")
    WHATSAPP_TIMEOUT_SECONDS: float = Field(10.0, description="HTTP timeout for a single provider call.")
    NOTIFICATION_WORKERS: int = Field(2, description="Worker threads used for fire-and-forget notifications.")

    # ----- Workflow -----
    PROGRESS_RETRY_ATTEMPTS: int = Field(3, description="Attempts for the best-effort progress advance after feedback.")


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
