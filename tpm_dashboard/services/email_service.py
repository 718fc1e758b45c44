"""
TPM Dashboard
Email Service.

Sends templated HTML email over SMTP. When SMTP is not configured the email
is logged but not sent (dev/test mode).

Configuration (env vars):
    MAIL_SERVER     SMTP host (default: None → log-only mode)
    MAIL_PORT       SMTP port (default: 587)
    MAIL_USE_TLS    Use TLS (default: true)
    MAIL_USERNAME   SMTP username
    MAIL_PASSWORD   SMTP password
    MAIL_DEFAULT_SENDER  Default from address
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from flask import current_app

from tpm_dashboard.core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Email Templates
# ═══════════════════════════════════════════════════════════════════════════

_TEMPLATES: dict[str, dict[str, str]] = {
    "escalation": {
        "subject": "[TPM Dashboard] Program Escalation ({urgency}): {title}",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #1e293b; color: white; padding: 16px 24px;">
                <h2 style="margin: 0; font-size: 18px;">Program Escalation</h2>
            </div>
            <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0;">
                <p style="text-transform: uppercase; font-weight: 600;">Urgency: {urgency}</p>
                <h3 style="margin: 16px 0 8px; color: #1e293b;">{title}</h3>
                <p style="color: #64748b; line-height: 1.6;">{message}</p>
                <ul>{details}</ul>
                <p>Please review and take appropriate action.</p>
            </div>
        </div>
        """,
    },
}


class EmailService:
    """Email sending with template support and a log-only fallback."""

    @staticmethod
    def is_configured() -> bool:
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def get_template(template_name: str) -> dict[str, str] | None:
        return _TEMPLATES.get(template_name)

    @classmethod
    def send(cls, *, to_email: str, subject: str, html_body: str) -> str:
        """
        Send an email.

        Returns:
            "smtp" when delivered over SMTP, "log_only" in dev/test mode.

        Raises:
            IntegrationError: SMTP delivery failed.
        """
        if not cls.is_configured():
            logger.info("Email (dev mode): to=%s subject='%s'", to_email, subject)
            return "log_only"

        try:
            cls._send_smtp(to_email=to_email, subject=subject, html_body=html_body)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email failed: to=%s error=%s", to_email, exc)
            raise IntegrationError("email", str(exc)) from exc
        logger.info("Email sent: to=%s subject='%s'", to_email, subject)
        return "smtp"

    @classmethod
    def send_from_template(cls, *, to_email: str, template_name: str,
                           context: dict[str, Any]) -> str:
        template = cls.get_template(template_name)
        if not template:
            raise IntegrationError("email", f"template not found: {template_name}")

        subject = template["subject"].format_map(_SafeDict(context))
        html_body = template["html"].format_map(_SafeDict(context))
        return cls.send(to_email=to_email, subject=subject, html_body=html_body)

    @staticmethod
    def _send_smtp(*, to_email: str, subject: str, html_body: str) -> None:
        cfg = current_app.config
        server = cfg.get("MAIL_SERVER")
        port = cfg.get("MAIL_PORT", 587)
        use_tls = cfg.get("MAIL_USE_TLS", True)
        username = cfg.get("MAIL_USERNAME")
        password = cfg.get("MAIL_PASSWORD")
        sender = cfg.get("MAIL_DEFAULT_SENDER") or f"noreply@{server}"

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(server, port, timeout=30) as smtp:
            if use_tls:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(msg)


class _SafeDict(dict):
    """Dict that returns {key} for missing keys instead of raising."""

    def __missing__(self, key):
        return f"{{{key}}}"
