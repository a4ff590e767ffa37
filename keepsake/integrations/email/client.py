"""
Email delivery through the Resend HTTP API.
Handles invitation and release notification mail for the core.
"""

import httpx

from keepsake.core.config import settings
from keepsake.core.errors import EmailDeliveryError
from keepsake.core.logging import get_logger, mask_email
from keepsake.integrations.retry import TransientHTTPError, raise_for_transient, with_retry

logger = get_logger(__name__)


class EmailClient:
    """
    Resend API client.

    When no API key is configured sends are skipped and reported as not
    delivered, so local development works without an email account.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        sender: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.api_url = api_url or settings.email_api_url
        self.sender = sender or settings.email_from
        self.http = http_client or httpx.Client(timeout=10.0)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, html: str) -> bool:
        """
        Send one email.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body

        Returns:
            True if the provider accepted the message, False if email is disabled

        Raises:
            EmailDeliveryError: Provider rejected the message or stayed unavailable after retries
        """
        if not self.enabled:
            logger.warning(f"Email service not configured - skipping mail to {mask_email(to)}")
            return False

        try:
            message_id = self._post(to, subject, html)
        except (TransientHTTPError, httpx.HTTPError) as e:
            raise EmailDeliveryError(f"Email to {mask_email(to)} failed: {e}") from e

        logger.info(f"Sent email {message_id} to {mask_email(to)}")
        return True

    @with_retry
    def _post(self, to: str, subject: str, html: str) -> str | None:
        response = self.http.post(
            self.api_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"from": self.sender, "to": [to], "subject": subject, "html": html},
        )
        raise_for_transient(response)
        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"Email provider rejected message ({response.status_code}): {response.text[:200]}"
            )
        return response.json().get("id")

    def close(self) -> None:
        self.http.close()
