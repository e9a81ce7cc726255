"""
HURE Core - Email Service

Transactional email through the Brevo REST API. Without BREVO_API_KEY
the message is logged instead of sent.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from typing import Optional

import httpx

from hure_core.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


@dataclass(frozen=True)
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    dev: bool = False


def email_template(content: str) -> str:
    year = datetime.now(timezone.utc).year
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Helvetica, Arial, sans-serif; background: #f5f5f5; padding: 40px 20px;">
  <div style="max-width: 500px; margin: 0 auto; background: white; border-radius: 12px;">
    <div style="background: #059669; padding: 30px; text-align: center; color: white; font-size: 28px; font-weight: bold;">HURE</div>
    <div style="padding: 30px;">{content}</div>
    <div style="text-align: center; color: #999; font-size: 12px; padding: 20px 30px 30px;">
      <p>&copy; {year} HURE - Healthcare Unified Resource Enterprise</p>
      <p><a href="{escape(settings.APP_URL)}">gethure.com</a></p>
    </div>
  </div>
</body>
</html>"""


async def send_email(to: str, subject: str, html: str) -> EmailResult:
    if not settings.BREVO_API_KEY:
        logger.info("[dev] BREVO_API_KEY not configured, email not sent: to=%s subject=%r", to, subject)
        return EmailResult(success=True, dev=True)

    payload = {
        "sender": {"name": settings.FROM_NAME, "email": settings.FROM_EMAIL},
        "to": [{"email": to}],
        "subject": subject,
        "htmlContent": html,
    }
    headers = {
        "api-key": settings.BREVO_API_KEY,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }

    async with httpx.AsyncClient(timeout=15.0) as client:
        try:
            resp = await client.post(settings.BREVO_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.exception("Brevo request failed for %s: %s", to, exc)
            raise EmailDeliveryError("Failed to send email") from exc

    if resp.status_code >= 400:
        try:
            detail = resp.json().get("message")
        except ValueError:
            detail = resp.text
        logger.error("Brevo API error %s for %s: %s", resp.status_code, to, detail)
        raise EmailDeliveryError(detail or "Failed to send email")

    message_id = resp.json().get("messageId")
    logger.info("Email sent to %s (%s): %s", to, message_id, subject)
    return EmailResult(success=True, message_id=message_id)


async def send_otp_email(to: str, code: str, clinic_name: str) -> EmailResult:
    content = f"""
    <h2>Email Verification</h2>
    <p>Your verification code for <strong>{escape(clinic_name)}</strong> is:</p>
    <div style="font-size: 36px; letter-spacing: 10px; color: #059669; text-align: center;">{escape(code)}</div>
    <p>This code is valid for <strong>{settings.OTP_EXPIRE_MINUTES} minutes</strong>.</p>
    <p>If you didn't request this code, please ignore this email.</p>
    """
    return await send_email(to, "Your HURE Verification Code", email_template(content))


async def send_activation_email(to: str, clinic_name: str, first_login_url: str) -> EmailResult:
    content = f"""
    <h2>Welcome to HURE!</h2>
    <p>Your HURE account for <strong>{escape(clinic_name)}</strong> has been activated.</p>
    <p style="text-align: center;"><a href="{escape(first_login_url)}">Set Up Your Account</a></p>
    <p>This link expires in <strong>{settings.FIRST_LOGIN_TOKEN_EXPIRE_HOURS} hours</strong>.</p>
    <p style="word-break: break-all;">{escape(first_login_url)}</p>
    """
    return await send_email(to, "Your HURE Account is Now Active!", email_template(content))


async def send_suspension_email(to: str, clinic_name: str, reason: str | None) -> EmailResult:
    reason_html = f"<p><strong>Reason:</strong> {escape(reason)}</p>" if reason else ""
    content = f"""
    <h2>Account Suspended</h2>
    <p>Your HURE account for <strong>{escape(clinic_name)}</strong> has been suspended.</p>
    {reason_html}
    <p>If you believe this is an error, contact <a href="mailto:support@gethure.com">support@gethure.com</a>.</p>
    """
    return await send_email(to, "Your HURE Account Has Been Suspended", email_template(content))
