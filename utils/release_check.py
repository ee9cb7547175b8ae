"""
Release Lookup

Queries the release API for the latest published autobrr release, used by
the version command.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from typing import Optional

import httpx

from config.settings import config

logger = logging.getLogger(__name__)

# The release API answers 500 instead of 404 for unknown repos
NOT_FOUND_STATUSES = (404, 500)


class ReleaseLookupError(Exception):
    """Raised when the latest release cannot be determined."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def latest_release_url(base_url: str, owner: str, repo: str) -> str:
    """Build the latest-release endpoint URL."""
    return f"{base_url.rstrip('/')}/repos/{owner}/{repo}/releases/latest"


def fetch_latest_release(
    base_url: Optional[str] = None,
    owner: Optional[str] = None,
    repo: Optional[str] = None,
    timeout: Optional[float] = None,
    transport: Optional[httpx.BaseTransport] = None
) -> str:
    """
    Get the tag name of the latest release.

    Args:
        base_url: Release API base URL (default: RELEASE_API_URL)
        owner: Repository owner (default: RELEASE_OWNER)
        repo: Repository name (default: RELEASE_REPO)
        timeout: Request timeout in seconds (default: RELEASE_API_TIMEOUT)
        transport: Optional httpx transport (tests)

    Returns:
        Release tag, e.g. "v1.50.0"

    Raises:
        ReleaseLookupError: On timeout, transport error, missing release or bad body
    """
    owner = owner or config.RELEASE_OWNER
    repo = repo or config.RELEASE_REPO
    url = latest_release_url(base_url or config.RELEASE_API_URL, owner, repo)
    timeout = timeout if timeout is not None else config.RELEASE_API_TIMEOUT

    logger.debug("[Release] GET %s", url)
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.get(url, headers={"Accept": "application/json"})
    except httpx.TimeoutException as e:
        raise ReleaseLookupError(
            "Server timed out while fetching latest release from api", "TIMEOUT"
        ) from e
    except httpx.HTTPError as e:
        raise ReleaseLookupError(
            f"Failed to fetch latest release from api: {e}", "REQUEST_FAILED"
        ) from e

    if response.status_code in NOT_FOUND_STATUSES:
        raise ReleaseLookupError(f"No release found for {owner}/{repo}", "NOT_FOUND")
    if response.is_error:
        raise ReleaseLookupError(
            f"Failed to fetch latest release from api: HTTP {response.status_code}", "REQUEST_FAILED"
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise ReleaseLookupError(f"Failed to decode response from api: {e}", "DECODE_FAILED") from e

    tag_name = payload.get('tag_name') if isinstance(payload, dict) else None
    if not isinstance(tag_name, str):
        raise ReleaseLookupError(
            "Failed to decode response from api: missing tag_name", "DECODE_FAILED"
        )
    return tag_name
