"""
Retrieval of posts and pages from the source WordPress site.

:func:`fetch_content` reads a whole collection through the paginated REST
endpoint with ``_embed`` enabled.  The first page tells us how many pages
exist (``X-WP-TotalPages``); the remaining pages are then requested in
parallel and merged.  Retrieval is all-or-nothing: if any page fails the
whole call raises and no partial list is returned.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional

import requests

from wp_migrator.migrators.wordpress_api import api_fetch, api_url, raise_for_status, send
from wp_migrator.models.wp_content import CONTENT_TYPES, ContentItem, SiteConnection

logger = logging.getLogger(__name__)

PER_PAGE = 100

ProgressCallback = Callable[[int, int], None]


def _check_content_type(content_type: str) -> None:
    if content_type not in CONTENT_TYPES:
        raise ValueError(f"Unsupported content type {content_type!r}; expected one of {CONTENT_TYPES}")


def _header_int(resp: requests.Response, name: str) -> Optional[int]:
    value = resp.headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s header: %r", name, value)
        return None


def _page_url(connection: SiteConnection, content_type: str, page: int) -> str:
    return api_url(connection, f"{content_type}?_embed&per_page={PER_PAGE}&page={page}")


def _parse_items(data: Any) -> List[ContentItem]:
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of items, got {type(data).__name__}")
    return [ContentItem.model_validate(entry) for entry in data]


def _fetch_page(connection: SiteConnection, content_type: str, page: int) -> List[ContentItem]:
    logger.debug("Fetching %s page %d", content_type, page)
    data = api_fetch("GET", _page_url(connection, content_type, page), connection)
    return _parse_items(data)


def fetch_content(
    connection: SiteConnection,
    content_type: str = "posts",
    on_progress: Optional[ProgressCallback] = None,
) -> List[ContentItem]:
    """Return every item of ``content_type`` on the site behind ``connection``.

    ``on_progress(loaded, total)`` is called once after the first page and,
    when there is more than one page, once more after all the others.  The
    order of items across pages 2..N is not guaranteed.

    :raises MigrationError: if the first page or any later page fails.
    """
    _check_content_type(content_type)

    first = send(
        "GET",
        _page_url(connection, content_type, 1),
        proxy_url=connection.proxy_url,
        headers=connection.auth_headers(),
    )
    raise_for_status(first)

    total_pages = _header_int(first, "X-WP-TotalPages") or 1
    items = _parse_items(first.json())
    total_items = _header_int(first, "X-WP-Total")
    if total_items is None:
        total_items = len(items)

    logger.info(
        "Fetched page 1/%d of %s from %s (%d of %d items)",
        total_pages, content_type, connection.base_url, len(items), total_items,
    )
    if on_progress:
        on_progress(len(items), total_items)

    if total_pages <= 1:
        return items

    pages = range(2, total_pages + 1)
    with ThreadPoolExecutor(max_workers=len(pages), thread_name_prefix="wp-page") as executor:
        # a failed page re-raises here; leaving the block still waits for the rest
        results = list(executor.map(lambda page: _fetch_page(connection, content_type, page), pages))

    for page_items in results:
        items.extend(page_items)

    logger.info("Fetched %d %s from %s", len(items), content_type, connection.base_url)
    if on_progress:
        on_progress(len(items), total_items)
    return items


def get_full_content_details(item_id: int, content_type: str, connection: SiteConnection) -> ContentItem:
    """Fetch one item by id with its embedded author, media and terms."""
    _check_content_type(content_type)
    data = api_fetch("GET", api_url(connection, f"{content_type}/{item_id}?_embed"), connection)
    return ContentItem.model_validate(data)
