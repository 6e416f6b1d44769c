"""
Featured media transfer between two WordPress sites.

The asset is downloaded from the source (through the source proxy, if
any) and re-uploaded to the destination's ``/media`` endpoint as a
multipart ``file`` field.  No existence check is made on the destination:
each call creates a new media object there.
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

from wp_migrator.migrators.wordpress_api import api_url, raise_for_status, send
from wp_migrator.models.wp_content import MediaAsset, SiteConnection
from wp_migrator.utils.errors import HttpStatusError, InvalidMediaUrlError

logger = logging.getLogger(__name__)

PROXY_DOWNLOAD_ERROR = """Image download failed using the proxy. This can happen for several reasons:

1. Proxy Error: The Proxy URL ('{proxy}') is incorrect, has a typo, or the proxy service is down.
2. Original Image URL Error: The image URL from the source site might be invalid or unreachable by the proxy.
3. Network Issue: Your own network connection might be unstable.

Action: Please double-check your Proxy URL. If it's correct, the proxy service itself may be the issue. Try a different one."""

DIRECT_DOWNLOAD_ERROR = """Image download failed. This is typically a CORS security error from the source server.

Primary Solution: Configure a CORS proxy URL for the Source Site. This is the most common fix when media downloads get no response.

Other Possibilities:
1. Mixed Content: The image is on 'http://' while the application runs on 'https://'.
2. Invalid Image URL: The URL for the image itself may be wrong or the image is not publicly accessible.
3. Network Issue: A firewall or unstable connection could be blocking the download."""

UPLOAD_NETWORK_ERROR = (
    "Could not upload image to destination site. This is often a CORS policy problem, "
    "a permissions issue, or a network error."
)

UPLOAD_FAILED_PREFIX = "Media upload to destination failed"


def resolve_media_url(source_url: str, base_url: str) -> str:
    """Return ``source_url`` as an absolute URL, resolving it against ``base_url`` if relative."""
    parsed = urlparse(source_url or "")
    if parsed.scheme and parsed.netloc:
        return source_url
    base = urlparse(base_url or "")
    if not (base.scheme and base.netloc) or not source_url:
        raise InvalidMediaUrlError(
            f"Could not resolve media URL '{source_url}' against base URL '{base_url}'."
        )
    return urljoin(f"{base_url.rstrip('/')}/", source_url)


def download_media(asset: MediaAsset, source: SiteConnection) -> bytes:
    url = resolve_media_url(asset.source_url, source.base_url)
    if source.proxy_url:
        network_error = PROXY_DOWNLOAD_ERROR.format(proxy=source.proxy_url)
    else:
        network_error = DIRECT_DOWNLOAD_ERROR
    resp = send("GET", url, proxy_url=source.proxy_url, network_error=network_error)
    if not resp.ok:
        raise HttpStatusError(
            "Failed to download image from source. The server responded with status "
            f"{resp.status_code} ({resp.reason}). This could be a permissions issue on the "
            "source file or an invalid image URL.",
            status_code=resp.status_code,
            reason=resp.reason or "",
        )
    logger.debug("Downloaded %s (%d bytes)", url, len(resp.content))
    return resp.content


def upload_media(data: bytes, asset: MediaAsset, destination: SiteConnection) -> dict:
    """Upload ``data`` to the destination media library and return the new media record."""
    mime_type = asset.mime_type or "application/octet-stream"
    resp = send(
        "POST",
        api_url(destination, "media"),
        proxy_url=destination.proxy_url,
        headers=destination.auth_headers(),
        files={"file": (asset.filename, data, mime_type)},
        network_error=UPLOAD_NETWORK_ERROR,
    )
    raise_for_status(resp, UPLOAD_FAILED_PREFIX)
    return resp.json()


def transfer_media(asset: MediaAsset, source: SiteConnection, destination: SiteConnection) -> int:
    """Copy ``asset`` from ``source`` to ``destination`` and return the destination media id."""
    logger.info("Transferring media %s to %s", asset.filename, destination.base_url)
    data = download_media(asset, source)
    media = upload_media(data, asset, destination)
    media_id = media.get("id") if isinstance(media, dict) else None
    if media_id is None:
        raise ValueError(f"Destination did not return an id for uploaded media '{asset.filename}'")
    logger.info("Uploaded %s as media %s", asset.filename, media_id)
    return int(media_id)
