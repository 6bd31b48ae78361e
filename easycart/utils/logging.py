"""Root logger setup for the cart client.

``configure_root`` is called once by the CLI entrypoint; modules log through
``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%H:%M:%S"
LEVEL_ENV_VAR = "EASYCART_LOG_LEVEL"
DEBUG_ENV_VARS = ("EASYCART_DEBUG", "EASYCART_DEBUG_LOGGING")
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def parse_level(value: int | str | None, fallback: int = logging.INFO) -> int:
    """Accept ``10``, ``"10"`` or ``"debug"``; anything else yields ``fallback``."""
    if isinstance(value, int):
        return value
    text = (value or "").strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper()) if text else None
    return level if isinstance(level, int) else fallback


def env_level(env: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """Level forced by the environment, or ``None`` when nothing is set."""
    source = os.environ if env is None else env
    explicit = source.get(LEVEL_ENV_VAR)
    if explicit:
        return parse_level(explicit)
    for flag in DEBUG_ENV_VARS:
        if (source.get(flag) or "").strip().lower() in _TRUTHY:
            return logging.DEBUG
    return None


def configure_root(
    default_level: int | str = logging.INFO,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """
    Configure the root logger and return the effective level.

    Environment overrides:
      - EASYCART_LOG_LEVEL: explicit level (name or number)
      - EASYCART_DEBUG / EASYCART_DEBUG_LOGGING: truthy -> DEBUG
    """
    forced = env_level(env)
    effective = forced if forced is not None else parse_level(default_level)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=effective, format=_FORMAT, datefmt=_DATEFMT)
    root.setLevel(effective)
    # urllib3 connection chatter drowns the pricing trace at DEBUG.
    logging.getLogger("urllib3").setLevel(max(effective, logging.INFO))
    return effective


def level_name(level: int) -> str:
    return logging.getLevelName(level)


__all__ = ["configure_root", "env_level", "level_name", "parse_level"]
