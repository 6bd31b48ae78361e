"""Shared ``requests`` transport for the pricing and VIP plan adapters.

Callers own URLs and status handling; this module only adds the bearer
header, applies the timeout and turns transport failures into
``ApiTimeoutError`` / ``ApiError``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests import exceptions as req_exc

from easycart.adapters.api_errors import ApiError, ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry policy for one adapter.

    Attributes:
        request_timeout_s: Timeout used when a call passes none.
        retries: Extra attempts after a timeout or connection error. Pricing
            uses ``0`` so a slow engine surfaces as a failure immediately.
    """

    request_timeout_s: float = 30.0
    retries: int = 0


class RetryingSession:
    """``requests.Session`` wrapper with bearer auth and bounded retries."""

    def __init__(self, auth_token: Optional[str], cfg: HttpConfig) -> None:
        self.session = requests.Session()
        self.auth_token = auth_token
        self.cfg = cfg

    def _headers(self, *, has_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        label = f"{method.upper()} {url}"
        send = getattr(self.session, method)
        attempts = max(0, int(self.cfg.retries)) + 1
        for _ in range(attempts):
            try:
                return send(url, **kwargs)
            except (req_exc.Timeout, req_exc.ConnectionError):
                continue
            except req_exc.RequestException as exc:
                raise ApiError(str(exc), context=label) from exc
        raise ApiTimeoutError(f"No response from {url} after {attempts} attempt(s)", context=label)

    def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """GET ``url``.

        Raises:
            ApiTimeoutError: Every attempt timed out or failed to connect.
            ApiError: Any other transport failure.
        """
        return self._send(
            "get",
            url,
            params=params,
            headers=self._headers(),
            timeout=timeout or self.cfg.request_timeout_s,
        )

    def post(
        self,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """POST ``json_body`` as JSON to ``url``; raises like :meth:`get`."""
        return self._send(
            "post",
            url,
            data=None if json_body is None else json.dumps(json_body),
            headers=self._headers(has_body=json_body is not None),
            timeout=timeout or self.cfg.request_timeout_s,
        )


__all__ = ["HttpConfig", "RetryingSession"]
