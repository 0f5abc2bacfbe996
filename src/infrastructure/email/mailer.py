"""Outbound email over SMTP.

Sends run in a worker thread so the event loop is never blocked. Delivery is
best-effort: failures are logged and never reach the caller.
"""

import asyncio
import html
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

import structlog

from core.config import settings
from domain.entities.events import EventType, InviteCreated, WaitlistJoined
from domain.services.event_bus import EventBus

logger = structlog.get_logger()

SMTP_TIMEOUT_SECONDS = 10


def format_expiry(expires_in_minutes: int) -> str:
    if expires_in_minutes < 60:
        return f"{expires_in_minutes} minutes"
    return f"{round(expires_in_minutes / 60)} hours"


class Mailer:
    """SMTP mailer. SSL on port 465, STARTTLS otherwise."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
    ) -> None:
        self._host = host if host is not None else settings.smtp_host
        self._port = port if port is not None else settings.smtp_port
        self._username = username if username is not None else settings.smtp_username
        self._password = password if password is not None else settings.smtp_password
        self._from_email = (from_email if from_email is not None else settings.smtp_from_email) or self._username
        self._from_name = from_name if from_name is not None else settings.smtp_from_name
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._username and self._password)

    async def send_magic_link(
        self,
        email: str,
        first_name: str | None,
        magic_link: str,
        expires_in_minutes: int,
    ) -> bool:
        """Send an invite email containing the magic link."""
        greeting = f"Hi {first_name}!" if first_name else "Hi!"
        expiry = format_expiry(expires_in_minutes)

        text_body = (
            f"{greeting}\n\n"
            "You've been invited to access the app. Open the link below to get started:\n\n"
            f"{magic_link}\n\n"
            f"This link expires in {expiry}.\n"
        )
        html_body = f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.5; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <p>{html.escape(greeting)}</p>
        <p>You've been invited to access the app.<br/>Click the button below to get started:</p>
        <div style="text-align: center; margin: 30px 0;">
            <a href="{html.escape(magic_link, quote=True)}" style="display: inline-block; padding: 12px 30px; background-color: #3b82f6; color: #ffffff; text-decoration: none; border-radius: 6px; font-weight: 600;">Access App</a>
        </div>
        <p style="font-size: 12px; color: #666;">This link expires in {expiry}.</p>
    </div>
</body>
</html>"""

        return await self.send(email, "Your App Magic Link - Access Inside", html_body, text_body)

    async def send_waitlist_confirmation(self, email: str, first_name: str | None) -> bool:
        """Confirm a waitlist signup."""
        greeting = f"Hi {first_name}!" if first_name else "Hi!"
        text_body = (
            f"{greeting}\n\n"
            "Thanks for joining the waitlist. We'll email you as soon as your access is ready.\n"
        )
        html_body = f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.5; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <p>{html.escape(greeting)}</p>
        <p>Thanks for joining the waitlist. We'll email you as soon as your access is ready.</p>
    </div>
</body>
</html>"""

        return await self.send(email, "You're on the waitlist", html_body, text_body)

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str | None = None) -> bool:
        """Send one message. Returns False when skipped or failed."""
        if not self.is_configured:
            logger.warning("smtp_not_configured", subject=subject)
            return False

        message = self._build_message(to_email, subject, html_body, text_body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_send_failed", subject=subject, error=str(e), error_type=type(e).__name__)
            return False

        logger.info("email_sent", subject=subject)
        return True

    def send_in_background(self, coro: Any) -> asyncio.Task[Any]:
        """Schedule a send without awaiting it. The task is kept alive until done."""
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def drain(self) -> None:
        """Wait for scheduled sends to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("email_task_failed", error=str(task.exception()))

    def _build_message(self, to_email: str, subject: str, html_body: str, text_body: str | None) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self._from_name} <{self._from_email}>"
        msg["To"] = to_email
        if text_body:
            msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _deliver(self, message: MIMEMultipart) -> None:
        server: smtplib.SMTP
        if self._port == 465:
            server = smtplib.SMTP_SSL(self._host, self._port, timeout=SMTP_TIMEOUT_SECONDS)
        else:
            server = smtplib.SMTP(self._host, self._port, timeout=SMTP_TIMEOUT_SECONDS)
            server.starttls()
        try:
            server.login(self._username, self._password)
            server.send_message(message)
        finally:
            server.quit()


def register_mail_subscribers(bus: EventBus, mailer: Mailer) -> None:
    """Deliver magic links and waitlist confirmations as detached tasks."""

    def on_invite_created(event: InviteCreated) -> None:
        mailer.send_in_background(
            mailer.send_magic_link(
                email=event.email,
                first_name=event.first_name,
                magic_link=event.magic_link,
                expires_in_minutes=event.expires_in_minutes,
            )
        )

    def on_waitlist_joined(event: WaitlistJoined) -> None:
        mailer.send_in_background(mailer.send_waitlist_confirmation(event.email, event.first_name))

    bus.subscribe(EventType.INVITE_CREATED, on_invite_created)
    bus.subscribe(EventType.WAITLIST_JOINED, on_waitlist_joined)
