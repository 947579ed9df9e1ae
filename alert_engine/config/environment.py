"""Environment variable loading and validation."""

import os
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/alerts.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Settings and secrets read from the environment."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        smtp_sender_name: Optional[str] = None,
        smtp_sender_email: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        push_gateway_url: Optional[str] = None,
        push_api_token: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.smtp_sender_name = smtp_sender_name or "Job Alerts"
        self.smtp_sender_email = smtp_sender_email
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.push_gateway_url = push_gateway_url
        self.push_api_token = push_api_token
        self.environment = environment or "local"


def load_environment_config() -> EnvironmentConfig:
    """Load and validate environment variables.

    Required:
    - SMTP_HOST: SMTP server hostname
    - SMTP_PORT: SMTP server port (1-65535)

    Optional:
    - SMTP_USER / SMTP_PASS: SMTP credentials (both or neither)
    - SMTP_SENDER_NAME: Display name for the From header
    - SMTP_SENDER_EMAIL: From address (defaults to SMTP_USER or noreply@SMTP_HOST)
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/alerts.db)
    - PUSH_GATEWAY_URL / PUSH_API_TOKEN: push gateway endpoint and bearer token
    - LOG_LEVEL: Override log level
    - ENVIRONMENT: Label added to every log record

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    sender_email = os.getenv("SMTP_SENDER_EMAIL")
    log_level = os.getenv("LOG_LEVEL")
    push_gateway_url = os.getenv("PUSH_GATEWAY_URL")

    if not smtp_host:
        errors.append("Missing required environment variable: SMTP_HOST")
    if not smtp_port_str:
        errors.append("Missing required environment variable: SMTP_PORT")

    smtp_port = None
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if not 1 <= smtp_port <= 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if sender_email:
        try:
            sender_email = validate_email(sender_email, check_deliverability=False).normalized
        except EmailNotValidError as e:
            errors.append(f"Invalid SMTP_SENDER_EMAIL: '{sender_email}' - {e}")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if smtp_user and not smtp_pass:
        errors.append("SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication.")
    elif smtp_pass and not smtp_user:
        errors.append("SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication.")

    if push_gateway_url and not push_gateway_url.startswith(("http://", "https://")):
        errors.append(f"Invalid PUSH_GATEWAY_URL: '{push_gateway_url}'. Must be an http(s) URL.")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Ensure all required environment variables are set",
                "Verify SMTP_PORT is a number between 1 and 65535",
            ],
        )

    return EnvironmentConfig(
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        smtp_sender_name=os.getenv("SMTP_SENDER_NAME"),
        smtp_sender_email=sender_email,
        log_level=log_level.upper() if log_level else None,
        database_url=os.getenv("DATABASE_URL"),
        push_gateway_url=push_gateway_url,
        push_api_token=os.getenv("PUSH_API_TOKEN"),
        environment=os.getenv("ENVIRONMENT"),
    )
