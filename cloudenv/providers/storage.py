"""Object storage (GCS JSON API) preview client.

Only used to read a runtime's user script output when its startup script
failed.
"""

from __future__ import annotations

from urllib.parse import quote

from cloudenv.constants import OBJECT_PREVIEW_BYTES
from cloudenv.exceptions import StorageError
from cloudenv.infra.cancel import CancelToken
from cloudenv.infra.http import Auth, HttpClient, HttpError
from cloudenv.observability.logger import logger


class StorageClient:
    def __init__(self, base_url: str, auth: Auth | None = None, *, timeout: float = 60) -> None:
        self._http = HttpClient(base_url, auth, timeout=timeout)
        self._log = logger.bind(component="storage")

    async def __aenter__(self) -> StorageClient:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    async def get_object_preview(
        self,
        project: str,
        bucket: str,
        name: str,
        *,
        full: bool = False,
        cancel: CancelToken | None = None,
    ) -> str:
        """Object contents as text, truncated to a preview unless ``full``.

        ``project`` is billed for the read (requester-pays buckets).
        """
        path = f"storage/v1/b/{quote(bucket, safe='')}/o/{quote(name, safe='')}"
        headers = None if full else {"Range": f"bytes=0-{OBJECT_PREVIEW_BYTES}"}
        self._log.debug("Previewing gs://{bucket}/{name}", bucket=bucket, name=name)
        try:
            return await self._http.request(
                "GET",
                path,
                params={"alt": "media", "userProject": project},
                headers=headers,
                format="text",
                cancel=cancel,
            )
        except HttpError as e:
            raise StorageError(f"Failed to read gs://{bucket}/{name}: {e}", status=e.status) from e
