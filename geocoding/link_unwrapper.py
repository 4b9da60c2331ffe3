#Purpose: Resolve short / share links (maps.app.goo.gl, goo.gl, ...) so the resolver
#can look for coordinates in the final URL and the page body.
#Two modes:
#- direct: follow redirects with requests
#- proxy:  go through an AllOrigins-style fetch proxy ({proxy}?url=...), which answers
#          JSON {"contents": <body>, "status": {"url": <final url>}}

from dotenv import load_dotenv
import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests

load_dotenv()

logger = logging.getLogger(__name__)


class LinkUnwrapError(Exception):
    """Raised when a link cannot be fetched or the proxy answer is unusable."""
    pass


@dataclass(frozen=True)
class UnwrappedLink:
    resolved_url: str
    body: str


class LinkUnwrapper:
    def __init__(self,
                 proxy_url: Optional[str] = None,
                 timeout: float = 10,
                 session: Optional[requests.Session] = None):
        # empty string means "no proxy"
        self.proxy_url = proxy_url if proxy_url is not None else os.getenv("LINK_UNWRAP_PROXY_URL", "")
        self.timeout = timeout
        self.session = session or requests.Session()

    def unwrap(self, url: str) -> UnwrappedLink:
        if self.proxy_url:
            return self._unwrap_via_proxy(url)
        return self._unwrap_direct(url)

    def _unwrap_direct(self, url: str) -> UnwrappedLink:
        try:
            response = self.session.get(url, allow_redirects=True, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise LinkUnwrapError(f"Could not open {url}: {e}") from e

        logger.debug("Unwrapped %s -> %s", url, response.url)
        return UnwrappedLink(resolved_url=response.url or url, body=response.text or "")

    def _unwrap_via_proxy(self, url: str) -> UnwrappedLink:
        try:
            response = self.session.get(self.proxy_url, params={"url": url}, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise LinkUnwrapError(f"Proxy fetch failed for {url}: {e}") from e

        if not isinstance(data, dict):
            raise LinkUnwrapError(f"Unexpected proxy answer for {url}")

        status = data.get("status") or {}
        resolved_url = (status.get("url") or "") if isinstance(status, dict) else ""
        body = data.get("contents") or ""

        logger.debug("Unwrapped %s via proxy -> %s", url, resolved_url or "<no url>")
        return UnwrappedLink(resolved_url=resolved_url, body=body)
