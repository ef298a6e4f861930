# core/mail_gateway.py
"""
SMTP mail gateway

Sends one HTML message per call over aiosmtplib and always hands back a
SendResult; transport errors are logged and converted, never raised, so
callers can record every attempt the same way.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, parseaddr
from typing import Any, Dict, Mapping, Optional

import aiosmtplib

from core.template_engine import html_to_text

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Outcome of a single send attempt"""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SMTPSettings:
    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    from_address: str = 'WorkHub Pro <noreply@workhubpro.com>'
    timeout: int = 30

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'SMTPSettings':
        return cls(
            host=config.get('MAIL_SERVER', 'localhost'),
            port=int(config.get('MAIL_PORT', 587)),
            username=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
            use_tls=bool(config.get('MAIL_USE_TLS', True)),
            from_address=config.get('MAIL_FROM', cls.from_address),
            timeout=int(config.get('MAIL_TIMEOUT', 30)),
        )

    @property
    def implicit_tls(self) -> bool:
        return self.port == 465

    @property
    def domain(self) -> str:
        address = parseaddr(self.from_address)[1]
        return address.rpartition('@')[2] or 'localhost'


class MailGateway:
    """Thin wrapper around an SMTP server"""

    def __init__(self, settings: SMTPSettings):
        self.settings = settings

    def build_message(self, to: str, subject: str, html: str,
                      headers: Optional[Dict[str, str]] = None) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = self.settings.from_address
        msg['To'] = to
        msg['Date'] = formatdate(localtime=True)
        msg['Message-ID'] = f"<{uuid.uuid4()}@{self.settings.domain}>"

        for name, value in (headers or {}).items():
            msg[name] = value

        msg.attach(MIMEText(html_to_text(html), 'plain', 'utf-8'))
        msg.attach(MIMEText(html, 'html', 'utf-8'))
        return msg

    def _client(self) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            timeout=self.settings.timeout,
            use_tls=self.settings.implicit_tls,
            start_tls=False,
        )

    async def _open(self) -> aiosmtplib.SMTP:
        smtp = self._client()
        await smtp.connect()
        if self.settings.use_tls and not self.settings.implicit_tls:
            await smtp.starttls()
        if self.settings.username and self.settings.password:
            await smtp.login(self.settings.username, self.settings.password)
        return smtp

    async def _send_async(self, msg: MIMEMultipart) -> None:
        smtp = await self._open()
        try:
            await smtp.send_message(msg)
        finally:
            try:
                await smtp.quit()
            except aiosmtplib.SMTPException:
                smtp.close()

    def send(self, to: str, subject: str, html: str,
             headers: Optional[Dict[str, str]] = None) -> SendResult:
        """Send an HTML email; never raises"""
        try:
            msg = self.build_message(to, subject, html, headers)
            asyncio.run(self._send_async(msg))
        except aiosmtplib.SMTPResponseException as e:
            logger.error(f"Failed to send email to {to}: {e.code} {e.message}")
            return SendResult(success=False, error=f"{e.code} {e.message}")
        except Exception as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return SendResult(success=False, error=str(e) or e.__class__.__name__)

        logger.info(f"Email sent successfully to {to}")
        return SendResult(success=True, message_id=msg['Message-ID'])

    def verify(self) -> bool:
        """Open and close an authenticated connection"""
        async def _check():
            smtp = await self._open()
            await smtp.quit()

        try:
            asyncio.run(_check())
        except Exception as e:
            logger.error(f"Email configuration failed: {e}")
            return False

        logger.info("Email server is ready to send messages")
        return True
