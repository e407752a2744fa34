"""Transactional email via Resend. Without RESEND_API_KEY the message is logged instead."""

import httpx

from slaypoints.core.config import get_settings
from slaypoints.core.logging import get_logger

log = get_logger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class Mailer:
    def __init__(self, api_key: str | None = None, sender: str | None = None, timeout: float = 10.0) -> None:
        settings = get_settings()
        self.api_key = settings.resend_api_key if api_key is None else api_key
        self.sender = sender or settings.email_from
        self.timeout = timeout

    async def send(self, to: str, subject: str, html: str, text: str) -> None:
        if not self.api_key:
            log.info("email_not_sent_dev_mode", to=to, subject=subject, text=text)
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                RESEND_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": f"SlayPoints <{self.sender}>",
                    "to": [to],
                    "subject": subject,
                    "html": html,
                    "text": text,
                },
            )
            resp.raise_for_status()
        log.info("email_sent", to=to, subject=subject)

    async def send_password_reset_email(self, to: str, link: str, valid_minutes: int) -> None:
        text = (
            "Someone asked to reset the password of your SlayPoints account.\n\n"
            f"Choose a new password here: {link}\n\n"
            f"The link expires in {valid_minutes} minutes. "
            "If you didn't ask for this, you can ignore this email."
        )
        html = (
            "<p>Someone asked to reset the password of your SlayPoints account.</p>"
            f'<p><a href="{link}">Choose a new password</a></p>'
            f"<p>The link expires in {valid_minutes} minutes. "
            "If you didn't ask for this, you can ignore this email.</p>"
        )
        await self.send(to, "Reset your SlayPoints password", html, text)
