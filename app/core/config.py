from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReminderRuleSetting(BaseModel):
    """One entry of the REMINDER_RULES override (JSON list in the environment)."""

    code: str
    subject: str
    trigger: str
    offset_days: int = 0


class Settings(BaseSettings):
    database_url: str = Field(alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # JWT Configuration
    secret_key: str = Field(alias="SECRET_KEY")
    algorithm: str = Field(alias="ALGORITHM")
    access_token_expire_minutes: int = Field(alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # First Admin User
    first_admin_email: str = Field(alias="FIRST_ADMIN_EMAIL")
    first_admin_password: str = Field(alias="FIRST_ADMIN_PASSWORD")

    # Shared secret for the external cron trigger (scheduler tick)
    cron_secret: str | None = Field(default=None, alias="CRON_SECRET")

    # Email delivery: Resend HTTP API if configured, otherwise SMTP
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    resend_api_url: str = Field(
        default="https://api.resend.com/emails", alias="RESEND_API_URL"
    )
    email_from: str | None = Field(default=None, alias="EMAIL_FROM")
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int | None = Field(default=None, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")

    # Reminders
    fleet_manager_email: str | None = Field(default=None, alias="FLEET_MANAGER_EMAIL")
    reminder_max_attempts: int = Field(default=3, ge=1, alias="REMINDER_MAX_ATTEMPTS")
    reminder_retry_backoff_seconds: float = Field(
        default=2.0, ge=0, alias="REMINDER_RETRY_BACKOFF_SECONDS"
    )
    reminder_rules: list[ReminderRuleSetting] | None = Field(
        default=None, alias="REMINDER_RULES"
    )

    # Frontend URL (CORS origin)
    frontend_url: str | None = Field(default=None, alias="FRONTEND_URL")

    @field_validator(
        "cron_secret",
        "resend_api_key",
        "email_from",
        "smtp_host",
        "smtp_user",
        "smtp_password",
        "fleet_manager_email",
        "frontend_url",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional string fields."""
        if v == "":
            return None
        return v

    @field_validator("smtp_port", mode="before")
    @classmethod
    def empty_str_to_none_int(cls, v: str | int | None) -> int | None:
        """Convert empty strings to None for optional integer fields."""
        if v == "":
            return None
        if isinstance(v, str):
            try:
                return int(v)
            except ValueError:
                return None
        return v

    @property
    def smtp_configured(self) -> bool:
        return all(
            [
                self.smtp_host,
                self.smtp_port,
                self.smtp_user,
                self.smtp_password,
                self.email_from,
            ]
        )

    @property
    def resend_configured(self) -> bool:
        return bool(self.resend_api_key and self.email_from)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
