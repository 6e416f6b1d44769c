"""
Transfer of a single post or page from the source site to the destination.

:func:`transfer_content` runs three stages in order, each feeding the
creation payload:

1. featured media (download + re-upload) unless ``skip_image_transfer``;
2. categories and tags (posts only), resolved by slug;
3. creation of the item on the destination.

The first failing stage aborts the transfer and is re-raised wrapped in
:class:`MediaTransferError`, :class:`TaxonomyError` or
:class:`CreationError`.  Nothing done by earlier stages is undone: an
uploaded image or a created term stays on the destination.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from wp_migrator.migrators.media import transfer_media
from wp_migrator.migrators.taxonomy import resolve_terms
from wp_migrator.migrators.wordpress_api import api_fetch, api_url
from wp_migrator.models.wp_content import (
    CONTENT_TYPES,
    ContentItem,
    CreateContentPayload,
    MediaAsset,
    SiteConnection,
)
from wp_migrator.utils.errors import CreationError, MediaTransferError, TaxonomyError
from wp_migrator.utils.terms import embedded_taxonomy_terms, partition_term_ids

logger = logging.getLogger(__name__)

CREATION_PREFIXES: Dict[str, str] = {
    "posts": "Post creation failed",
    "pages": "Page creation failed",
}


def create_content(payload: CreateContentPayload, content_type: str, destination: SiteConnection) -> Dict[str, Any]:
    return api_fetch(
        "POST",
        api_url(destination, content_type),
        destination,
        json=payload.to_request_body(),
    )


def transfer_content(
    item: ContentItem,
    content_type: str,
    source: SiteConnection,
    destination: SiteConnection,
    *,
    skip_image_transfer: bool = False,
) -> Dict[str, Any]:
    """
    Create ``item`` on ``destination`` with its featured image and terms.

    :param item: Source item, fetched with ``_embed``.
    :param content_type: ``"posts"`` or ``"pages"``.
    :param source: Connection the item (and its media) come from.
    :param destination: Connection the item is created on.
    :param skip_image_transfer: Do not download or upload the featured image.
    :return: The destination's JSON record for the created item.
    :raises StageError: wrapping the first stage failure.
    """
    if content_type not in CONTENT_TYPES:
        raise ValueError(f"Unsupported content type {content_type!r}")

    payload = CreateContentPayload.from_item(item)

    media = None if skip_image_transfer else item.featured_media_embed
    if media is not None:
        try:
            payload.featured_media = transfer_media(MediaAsset.from_embedded(media), source, destination)
        except Exception as exc:
            logger.error("Error during media transfer for item %s: %s", item.id, exc)
            raise MediaTransferError(exc) from exc

    if content_type == "posts":
        try:
            resolved = resolve_terms(embedded_taxonomy_terms(item), destination)
        except Exception as exc:
            logger.error("Error during taxonomy transfer for item %s: %s", item.id, exc)
            raise TaxonomyError(exc) from exc
        categories, tags = partition_term_ids(resolved)
        payload.categories = categories or None
        payload.tags = tags or None
    elif item.parent:
        # TODO: map the source parent id to the destination page once parents are transferred first
        logger.debug("Page %s has parent %s; hierarchy is not reconstructed", item.id, item.parent)

    try:
        created = create_content(payload, content_type, destination)
    except Exception as exc:
        logger.error("Error during %s creation for item %s: %s", content_type, item.id, exc)
        raise CreationError(exc, prefix=CREATION_PREFIXES[content_type]) from exc

    logger.info(
        "Transferred %s %s to %s as %s",
        content_type, item.id, destination.base_url, created.get("id") if isinstance(created, dict) else None,
    )
    return created
