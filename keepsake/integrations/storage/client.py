"""
Signed media URLs from Supabase Storage.
"""

from urllib.parse import quote

import httpx

from keepsake.core.config import settings
from keepsake.core.errors import StorageError
from keepsake.core.logging import get_logger
from keepsake.integrations.retry import TransientHTTPError, raise_for_transient, with_retry

logger = get_logger(__name__)


class StorageClient:
    """Creates short-lived download URLs for stored video objects."""

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        bucket: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.service_key = service_key or settings.supabase_key
        self.bucket = bucket or settings.storage_bucket
        self.http = http_client or httpx.Client(timeout=10.0)

    def create_signed_url(self, storage_path: str, expires_in: int | None = None) -> str:
        """
        Sign one object path.

        Raises:
            StorageError: Storage refused or stayed unavailable
        """
        expires_in = expires_in or settings.signed_url_ttl_seconds
        try:
            signed_path = self._sign(storage_path, expires_in)
        except (TransientHTTPError, httpx.HTTPError) as e:
            raise StorageError(f"Could not sign media URL: {e}") from e
        return f"{self.base_url}/storage/v1{signed_path}"

    @with_retry
    def _sign(self, storage_path: str, expires_in: int) -> str:
        response = self.http.post(
            f"{self.base_url}/storage/v1/object/sign/{self.bucket}/{quote(storage_path)}",
            headers={
                "apikey": self.service_key,
                "Authorization": f"Bearer {self.service_key}",
            },
            json={"expiresIn": expires_in},
        )
        raise_for_transient(response)
        if response.status_code >= 400:
            raise StorageError(f"Storage rejected signing request ({response.status_code})")
        signed = response.json().get("signedURL")
        if not signed:
            raise StorageError("Storage response did not include a signed URL")
        return signed

    def close(self) -> None:
        self.http.close()
