from __future__ import annotations

import logging
from typing import Iterator, Optional

import requests

log = logging.getLogger(__name__)


class TransportError(Exception):
    """Request rejected, network failure, or non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HttpStreamTransport:
    """
    POSTs one user turn and yields the raw response body as it arrives.

    The body is not decoded here; framing and UTF-8 handling belong to
    StreamDecoder so that chunk boundaries stay visible to it.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        chunk_size: int = 1024,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg) -> "HttpStreamTransport":
        return cls(
            cfg.CHAT_STREAM_URL,
            timeout=cfg.REQUEST_TIMEOUT_SECONDS,
            chunk_size=cfg.STREAM_CHUNK_SIZE,
        )

    def stream(self, message: str) -> Iterator[bytes]:
        try:
            response = self._session.post(
                self.url,
                json={"message": message},
                headers={"Accept": "text/event-stream"},
                stream=True,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"request failed: {e}") from e

        with response:
            if not response.ok:
                raise TransportError(
                    f"Network response was not ok (status={response.status_code})",
                    status_code=response.status_code,
                )
            log.debug(f"STREAM_OPEN | url={self.url} | status={response.status_code}")
            try:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        yield chunk
            except requests.RequestException as e:
                raise TransportError(f"stream interrupted: {e}") from e

    def close(self) -> None:
        self._session.close()
