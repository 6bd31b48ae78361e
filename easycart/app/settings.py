"""Runtime settings for the cart client.

Settings come from an optional JSON file and ``EASYCART_*`` environment
variables (environment wins). Values are coerced the same way whichever
source they come from.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

DEFAULT_BASE_URL = "https://dev.eassylife.in/api/customer/v2.0.0"

_ENV_KEYS: Dict[str, str] = {
    "EASYCART_API_BASE_URL": "base_url",
    "EASYCART_AUTH_TOKEN": "auth_token",
    "EASYCART_REQUEST_TIMEOUT_S": "request_timeout_s",
    "EASYCART_RETRIES": "retries",
    "EASYCART_CURRENCY_SYMBOL": "currency_symbol",
    "EASYCART_USE_MOCK": "use_mock",
    "EASYCART_DEBUG_LOGGING": "debug_logging",
}


def _as_float(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return float(default)
    return number if number > 0 else float(default)


def _as_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return int(default)
    return number if number >= 0 else int(default)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class ApiSettings:
    """Typed runtime settings for adapters and the cart store."""

    base_url: str = DEFAULT_BASE_URL
    auth_token: str = ""
    request_timeout_s: float = 30.0
    retries: int = 0
    currency_symbol: str = "₹"
    use_mock: bool = False
    debug_logging: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ApiSettings":
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping.")
        return cls().apply_dict(payload)

    def apply_dict(self, payload: Mapping[str, Any]) -> "ApiSettings":
        """Return a copy with the known keys of ``payload`` applied."""
        updates: Dict[str, Any] = {}
        if "base_url" in payload:
            updates["base_url"] = str(payload["base_url"] or "").strip() or DEFAULT_BASE_URL
        if "auth_token" in payload:
            updates["auth_token"] = str(payload["auth_token"] or "").strip()
        if "request_timeout_s" in payload:
            updates["request_timeout_s"] = _as_float(payload["request_timeout_s"], self.request_timeout_s)
        if "retries" in payload:
            updates["retries"] = _as_int(payload["retries"], self.retries)
        if "currency_symbol" in payload:
            updates["currency_symbol"] = str(payload["currency_symbol"] or "") or self.currency_symbol
        if "use_mock" in payload:
            updates["use_mock"] = _as_bool(payload["use_mock"])
        if "debug_logging" in payload:
            updates["debug_logging"] = _as_bool(payload["debug_logging"])
        return replace(self, **updates)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_settings(
    path: Optional[str | Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> ApiSettings:
    """Load settings from ``path`` (JSON object) then apply environment overrides.

    Raises:
        ValueError: If the file does not contain a JSON object.
    """
    settings = ApiSettings()
    if path is not None:
        file_path = Path(path)
        if file_path.exists():
            raw = json.loads(file_path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError(f"{file_path}: settings must be a JSON object.")
            settings = settings.apply_dict(raw)

    source = os.environ if env is None else env
    overrides = {
        field_name: source[var] for var, field_name in _ENV_KEYS.items() if source.get(var)
    }
    if overrides:
        settings = settings.apply_dict(overrides)
    return settings


__all__ = ["ApiSettings", "DEFAULT_BASE_URL", "load_settings"]
