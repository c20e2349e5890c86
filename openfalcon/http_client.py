"""
HTTP transport for the OpenFalcon datasource.

Sends already-built requests to the backend and decodes JSON bodies.
No retries: failures surface to the caller as TransportError.
"""

import json
import logging
import socket
import ssl
from typing import Any, Dict
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .exceptions import TransportError

logger = logging.getLogger("openfalcon.http")


class FalconHttpClient:
    """Transport used by OpenFalconDatasource."""

    def __init__(self, timeout: int = 10, verify_tls: bool = True):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            verify_tls: Verify server certificates for HTTPS URLs
        """
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._ssl_context = self._create_ssl_context()

    def _create_ssl_context(self) -> ssl.SSLContext:
        ssl_context = ssl.create_default_context()
        if not self.verify_tls:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    def request(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Perform one request.

        Args:
            options: {"method", "url", optional "params" (dict, appended as
                query string), "data" (str body), "headers"}

        Returns:
            {"status": HTTP status, "data": decoded JSON body or None}

        Raises:
            TransportError: On HTTP, connection or timeout errors, or a
                body that is not JSON
        """
        method = options.get("method", "GET")
        url = options["url"]
        if options.get("params"):
            url = f"{url}{'&' if '?' in url else '?'}{urlencode(options['params'])}"

        body = options.get("data")
        if isinstance(body, str):
            body = body.encode("utf-8")

        req = Request(url, data=body, headers=options.get("headers") or {}, method=method)
        ssl_context = self._ssl_context if url.startswith("https://") else None

        logger.debug(f"{method} {url}")
        try:
            with urlopen(req, timeout=self.timeout, context=ssl_context) as resp:
                status = resp.status
                raw = resp.read()
        except HTTPError as e:
            raise TransportError(f"{method} {url} failed: HTTP {e.code} {e.reason}", url, e.code) from e
        except URLError as e:
            raise TransportError(f"{method} {url} failed: {e.reason}", url) from e
        except (socket.timeout, TimeoutError) as e:
            raise TransportError(f"{method} {url} timed out after {self.timeout}s", url) from e

        try:
            data = json.loads(raw.decode("utf-8")) if raw else None
        except ValueError as e:
            raise TransportError(f"{method} {url} returned a non-JSON body: {e}", url, status) from e
        return {"status": status, "data": data}
