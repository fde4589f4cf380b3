"""Mail relay tool."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import List, Optional

from toolhost.tools.base import Param, ToolContext, ToolError, ToolUnit


def send_mail_message(
    ctx: ToolContext,
    To: str,
    Subject: str,
    Body: str,
    From: Optional[str] = None,
) -> str:
    host = ctx.require("smtp_host")
    port = int(ctx.setting("smtp_port", 25))
    sender = From or ctx.require("mail_from")
    recipients = [addr.strip() for addr in To.replace(";", ",").split(",") if addr.strip()]
    if not recipients:
        raise ToolError("No recipient address given")

    message = EmailMessage()
    message["From"] = sender
    message["To"] = ", ".join(recipients)
    message["Subject"] = Subject
    message.set_content(Body)

    try:
        with smtplib.SMTP(host, port, timeout=float(ctx.setting("smtp_timeout", 30))) as smtp:
            if ctx.setting("smtp_starttls", False):
                smtp.starttls()
            username = ctx.setting("smtp_username")
            if username:
                smtp.login(username, ctx.setting("smtp_password", ""))
            refused = smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise ToolError(f"Relay {host}:{port} rejected the message: {exc}")

    delivered = [r for r in recipients if r not in refused]
    ctx.logger.info("Sent mail '%s' to %s via %s", Subject, delivered, host)
    return f"Message sent via {host}:{port} to {', '.join(delivered)}"


def tools() -> List[ToolUnit]:
    return [
        ToolUnit(
            name="Send-MailMessage",
            handler=send_mail_message,
            params=(
                Param("To", str, required=True, description="Comma-separated recipients"),
                Param("Subject", str, required=True),
                Param("Body", str, required=True),
                Param("From", str),
            ),
            description="Send a plain-text mail through the configured SMTP relay.",
            kind="Cmdlet",
        ),
    ]
