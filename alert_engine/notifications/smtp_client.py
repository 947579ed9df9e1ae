"""Thin smtplib wrapper handling TLS, authentication, and connection cleanup."""

import smtplib
import ssl
from email.message import EmailMessage
from typing import Callable, Optional

from alert_engine.config.environment import EnvironmentConfig
from alert_engine.logging import get_logger

from .models import SMTPDeliveryError

logger = get_logger(__name__, component="notification")

IMPLICIT_TLS_PORT = 465


class SMTPClient:
    """Sends EmailMessages over SMTP.

    Port 465 uses implicit TLS; other ports use STARTTLS when ``use_tls`` is
    set. The connection factories are injectable for testing.
    """

    def __init__(
        self,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(
        self,
        message: EmailMessage,
        env_config: EnvironmentConfig,
        use_tls: bool = True,
        timeout: int = 30,
    ) -> None:
        """Send a message, always closing the connection afterwards.

        Args:
            message: Fully built message
            env_config: SMTP host, port, and credentials
            use_tls: Upgrade with STARTTLS on non-implicit-TLS ports
            timeout: Connection timeout in seconds

        Raises:
            SMTPDeliveryError: If delivery fails for any reason
        """
        smtp = None
        try:
            if env_config.smtp_port == IMPLICIT_TLS_PORT:
                smtp = self.smtp_ssl_factory(
                    env_config.smtp_host,
                    env_config.smtp_port,
                    timeout=timeout,
                    context=ssl.create_default_context(),
                )
            else:
                smtp = self.smtp_factory(env_config.smtp_host, env_config.smtp_port, timeout=timeout)
                if use_tls:
                    smtp.starttls(context=ssl.create_default_context())

            if env_config.smtp_user and env_config.smtp_pass:
                smtp.login(env_config.smtp_user, env_config.smtp_pass)

            smtp.send_message(message)
            logger.debug(f"Message sent to {message['To']}", extra={"event": "smtp.send.succeeded"})

        except smtplib.SMTPException as e:
            raise SMTPDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise SMTPDeliveryError(f"Network error during SMTP connection: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def build_sender_address(env_config: EnvironmentConfig) -> str:
    """Build the From header: sender name plus SMTP_SENDER_EMAIL, SMTP_USER, or noreply@host."""
    sender_email = (
        env_config.smtp_sender_email
        or env_config.smtp_user
        or f"noreply@{env_config.smtp_host}"
    )
    return f"{env_config.smtp_sender_name} <{sender_email}>"
