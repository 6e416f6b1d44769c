"""
Low-level access to the WordPress REST API.

Every request made by the migrator goes through :func:`send`, which
applies the optional CORS proxy, performs the call with ``requests`` and
turns "no response at all" into a :class:`ConnectivityError`.  Non-2xx
responses are converted by :func:`raise_for_status` into
:class:`HttpStatusError`, whose message is the server's JSON ``message``
when present and ``HTTP error! status: <code>`` otherwise.

Nothing here retries: a failed call surfaces to the caller as-is.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from wp_migrator.models.wp_content import SiteConnection
from wp_migrator.utils.errors import ConnectivityError, HttpStatusError, InvalidUrlError

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = (
    "Network error: could not get a response from {url}. This is usually a CORS "
    "restriction, an invalid or offline URL, or mixed http/https content. "
    "Configure a CORS proxy URL for this site if the URL is correct."
)


def final_url(raw_url: str, proxy_url: Optional[str] = None) -> str:
    """Return ``raw_url`` routed through ``proxy_url`` when one is given.

    >>> final_url("https://a.test/wp-json/", "https://proxy.test//")
    'https://proxy.test/https://a.test/wp-json/'
    """
    if proxy_url:
        return f"{proxy_url.rstrip('/')}/{raw_url}"
    return raw_url


def send(
    method: str,
    url: str,
    *,
    proxy_url: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    network_error: Optional[str] = None,
    **kwargs: Any,
) -> requests.Response:
    """Perform one HTTP request, returning the response whatever its status.

    :raises InvalidUrlError: if the URL cannot be requested at all.
    :raises ConnectivityError: if no response was received.
    """
    target = final_url(url, proxy_url)
    logger.debug("%s %s", method.upper(), target)
    try:
        return requests.request(method, target, headers=headers or {}, **kwargs)
    except (requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema, requests.exceptions.InvalidURL) as exc:
        raise InvalidUrlError(
            f"Invalid URL '{target}'. Check that the site and proxy URLs start with http:// or https://. ({exc})"
        ) from exc
    except requests.RequestException as exc:
        message = network_error or NETWORK_ERROR_MESSAGE.format(url=url)
        raise ConnectivityError(f"{message} ({exc})") from exc


def raise_for_status(resp: requests.Response, prefix: Optional[str] = None) -> requests.Response:
    if not resp.ok:
        raise HttpStatusError.from_response(resp, prefix)
    return resp


def api_fetch(
    method: str,
    url: str,
    connection: SiteConnection,
    *,
    auth: bool = True,
    **kwargs: Any,
) -> Any:
    """Call a JSON endpoint on ``connection`` and return the decoded body."""
    headers = dict(kwargs.pop("headers", None) or {})
    if auth:
        headers.update(connection.auth_headers())
    resp = send(method, url, proxy_url=connection.proxy_url, headers=headers, **kwargs)
    raise_for_status(resp)
    return resp.json()


def api_url(connection: SiteConnection, path: str) -> str:
    return f"{connection.api_base}/{path.lstrip('/')}"
