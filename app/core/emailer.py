# FILE: app/core/emailer.py
from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import List, Optional, Tuple

from app.core.config import settings

logger = logging.getLogger(__name__)

# (filename, bytes_content, mime_type)
Attachment = Tuple[str, bytes, str]


def _get_from_email() -> str:
    """
    Decide FROM header:
    - Prefer settings.SMTP_FROM, fallback to settings.SMTP_USER
    - Wrapped with SMTP_FROM_NAME when configured
    """
    from_email = getattr(settings, "SMTP_FROM", None) or getattr(
        settings, "SMTP_USER", None)
    if not from_email:
        raise RuntimeError(
            "No FROM email configured. Set SMTP_FROM or SMTP_USER in settings."
        )
    name = getattr(settings, "SMTP_FROM_NAME", None)
    return formataddr((name, from_email)) if name else from_email


def _build_message(
    to_email: str,
    subject: str,
    body: str,
    html: Optional[str] = None,
    attachments: Optional[List[Attachment]] = None,
) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = _get_from_email()
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    if attachments:
        for filename, content, mime_type in attachments:
            maintype, _, subtype = (mime_type or
                                    "application/octet-stream").partition("/")
            if not maintype or not subtype:
                maintype = "application"
                subtype = "octet-stream"
            msg.add_attachment(
                content,
                maintype=maintype,
                subtype=subtype,
                filename=filename,
            )

    return msg


def send_email(
    to_email: str,
    subject: str,
    body: str = "",
    *,
    html: Optional[str] = None,
    attachments: Optional[List[Attachment]] = None,
) -> None:
    """
    Send one message over SMTP.

        send_email(
            "to@example.com",
            "Subject",
            "Plain text body",
            html="<p>HTML body</p>",
            attachments=[("file.pdf", pdf_bytes, "application/pdf")],
        )

    Raises on any transport error; callers decide what a failed send means.
    """
    if not to_email:
        raise ValueError("send_email: recipient is required")

    host = settings.SMTP_HOST
    port = int(settings.SMTP_PORT)
    user = settings.SMTP_USER
    password = settings.SMTP_PASSWORD

    if not host:
        raise RuntimeError("SMTP_HOST is not configured")

    msg = _build_message(to_email,
                         subject,
                         body,
                         html=html,
                         attachments=attachments)

    with smtplib.SMTP(host, port) as server:
        if settings.SMTP_TLS:
            server.starttls(context=ssl.create_default_context())
        if user and password:
            server.login(user, password)
        server.send_message(msg)

    logger.info("Email sent to %s (%d attachment(s))", to_email,
                len(attachments or []))
