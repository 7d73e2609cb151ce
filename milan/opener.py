"""
URL-scheme opener.

Turns ``milan://script/argument`` into ``http://localhost:<port>/script/argument``
and fires a single GET at the local agent. There is no retry; the call gives
up after a fixed deadline and the outcome is only logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger("milan.opener")

OPEN_DEADLINE_SECONDS = 10.0


def to_agent_url(url: str, port: int = 8080, host: str = "localhost") -> str:
    """
    Map a custom-scheme URL onto the agent's HTTP path.

    ``milan://mail/abc123`` -> ``http://localhost:8080/mail/abc123``.
    The authority part becomes the script name; the path (still encoded)
    becomes the argument. Query and fragment are dropped.

    Raises:
        ValueError: The URL has no scheme
    """
    parts = urlsplit(url.strip())
    if not parts.scheme:
        raise ValueError(f"Not a URL: {url!r}")
    return f"http://{host}:{port}/{parts.netloc}{parts.path}"


async def forward(
    url: str,
    port: int = 8080,
    deadline: float = OPEN_DEADLINE_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[int]:
    """
    Issue one GET for ``url`` and return the status code, or None.

    Never raises for network problems or the deadline; those are logged.
    """
    try:
        target = to_agent_url(url, port=port)
    except ValueError as e:
        logger.error("Invalid URL: %s", e)
        return None

    logger.info("%s -> %s", url, target)

    async with httpx.AsyncClient(transport=transport, timeout=deadline) as client:
        try:
            resp = await asyncio.wait_for(client.get(target), timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning("No response from %s within %.0fs", target, deadline)
            return None
        except httpx.HTTPError as e:
            logger.warning("Error calling %s: %s", target, e)
            return None

    logger.info("%s answered %d", target, resp.status_code)
    return resp.status_code
