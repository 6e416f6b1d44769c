from __future__ import annotations

import logging

from wp_migrator.migrators.wordpress_api import send
from wp_migrator.models.wp_content import SiteConnection
from wp_migrator.utils.errors import (
    ApiUnreachableError,
    AuthenticationError,
    HttpStatusError,
    server_message_from,
)

logger = logging.getLogger(__name__)

CONNECTIVITY_MESSAGE = """Network error: Could not connect to the URL. This is often due to one of the following:

1. CORS Policy: The WordPress site is not configured to allow requests from this application. A security plugin or server setting might be blocking it.
2. Invalid URL: The URL is incorrect, or the site is offline.
3. Mixed Content: Trying to connect to an 'http' site from a secure 'https' context.

To fix CORS issues, install a CORS plugin on the WordPress site or configure a CORS proxy URL for this connection."""

AUTH_FAILED_MESSAGE = "Authentication failed. Please check your username and Application Password."


def validate_connection(connection: SiteConnection) -> None:
    """
    Verifies that ``connection`` reaches a WordPress REST API and that its
    credentials authenticate as a user.

    Args:
        connection: The site connection to check.

    Raises:
        ApiUnreachableError: If the REST root answers with a non-2xx status.
        AuthenticationError: If ``users/me`` answers 401 or 403.
        HttpStatusError: If ``users/me`` fails with any other status.
        ConnectivityError: If either request gets no response at all.
    """
    logger.info("Validating connection to %s", connection.base_url)

    root = send("GET", connection.rest_root, proxy_url=connection.proxy_url, network_error=CONNECTIVITY_MESSAGE)
    if not root.ok:
        raise ApiUnreachableError(
            "Cannot reach the WordPress REST API endpoint. Please check the URL. "
            f"(Status: {root.status_code})",
            status_code=root.status_code,
            reason=root.reason or "",
        )

    me = send(
        "GET",
        f"{connection.api_base}/users/me?context=edit",
        proxy_url=connection.proxy_url,
        headers=connection.auth_headers(),
        network_error=CONNECTIVITY_MESSAGE,
    )
    if me.status_code in (401, 403):
        raise AuthenticationError(AUTH_FAILED_MESSAGE, status_code=me.status_code)
    if not me.ok:
        server_message = server_message_from(me)
        raise HttpStatusError(
            server_message or f"Authentication check failed with status: {me.status_code}",
            status_code=me.status_code,
            reason=me.reason or "",
            server_message=server_message,
        )

    logger.info("Connection to %s validated", connection.base_url)
