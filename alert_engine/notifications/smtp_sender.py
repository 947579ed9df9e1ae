"""SMTP-backed email sender for job alerts."""

from email.message import EmailMessage
from typing import Optional, Sequence

from alert_engine.config.environment import EnvironmentConfig
from alert_engine.config.models import EmailConfig
from alert_engine.domain.models import Owner
from alert_engine.logging import get_logger
from alert_engine.matching.models import MatchResult

from .base import EmailSender
from .payloads import build_alert_context
from .smtp_client import SMTPClient, build_sender_address
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")


class SMTPEmailSender(EmailSender):
    """Renders the job alert templates and sends a single email per alert cycle.

    No retries are made; a failed cycle is retried on the next scheduler pass.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        email_config: Optional[EmailConfig] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        smtp_client: Optional[SMTPClient] = None,
    ):
        self.env_config = env_config
        self.email_config = email_config or EmailConfig()
        self.template_renderer = template_renderer or TemplateRenderer()
        self.smtp_client = smtp_client or SMTPClient()

    def send_job_alert(self, owner: Owner, alert_name: str, matches: Sequence[MatchResult]) -> None:
        """Render and send the alert email.

        Raises:
            NotificationTemplateError: If rendering fails
            SMTPDeliveryError: If the SMTP server rejects the message
        """
        context = build_alert_context(
            owner, alert_name, matches, subject_prefix=self.email_config.subject_prefix
        )
        rendered = self.template_renderer.render(context)

        message = EmailMessage()
        message["Subject"] = rendered["subject"]
        message["From"] = build_sender_address(self.env_config)
        message["To"] = str(owner.email)
        message.set_content(rendered["text_body"])
        message.add_alternative(rendered["html_body"], subtype="html")

        self.smtp_client.send(
            message,
            self.env_config,
            use_tls=self.email_config.use_tls,
            timeout=self.email_config.timeout_seconds,
        )

        logger.info(
            f"Job alert email sent to owner {owner.id}",
            extra={
                "event": "notification.email.delivered",
                "owner_id": owner.id,
                "match_count": len(matches),
            },
        )
