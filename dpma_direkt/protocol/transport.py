from typing import Any

import httpx

from dpma_direkt.core.config import Settings, get_settings
from dpma_direkt.core.errors import TransportError
from dpma_direkt.core.logging import get_logger

logger = get_logger(__name__)

AJAX_HEADERS = {
    "faces-request": "partial/ajax",
    "X-Requested-With": "XMLHttpRequest",
    "Accept": "application/xml, text/xml, */*; q=0.01",
}

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"


def browser_headers(settings: Settings) -> dict[str, str]:
    return {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
        "Accept-Language": settings.dpma_accept_language,
        "User-Agent": settings.dpma_user_agent,
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
    }


class HttpTransport:
    """Cookie-carrying HTTP client for one wizard run.

    Redirects are never followed implicitly: the confirmation stage needs the raw 302.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = httpx.Client(
            base_url=self.settings.dpma_base_url,
            timeout=self.settings.http_timeout_seconds,
            follow_redirects=False,
            headers=browser_headers(self.settings),
            transport=transport,
        )

    def absolute(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.settings.dpma_base_url}{path}"

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        logger.debug(
            "dpma exchange",
            extra={"extra": {"method": method, "url": url, "status": response.status_code}},
        )
        if response.status_code >= 400:
            raise TransportError(f"{method} {url} returned HTTP {response.status_code}")
        return response

    def get(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = False,
    ) -> httpx.Response:
        return self._send("GET", url, headers=headers, follow_redirects=follow_redirects)

    def post(
        self,
        url: str,
        *,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return self._send("POST", url, data=data, files=files, content=content, headers=headers)

    def post_partial(self, url: str, fields: dict[str, str]) -> httpx.Response:
        headers = {**AJAX_HEADERS, "Content-Type": FORM_CONTENT_TYPE, "Referer": self.absolute(url)}
        return self.post(url, data=fields, headers=headers)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
