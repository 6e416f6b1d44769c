"""Pydantic models for WordPress REST records and migration state."""

from .wp_content import (
    ContentItem,
    CreateContentPayload,
    ItemStatus,
    MediaAsset,
    SiteConnection,
    TaxonomyTerm,
    TransferState,
)

__all__ = [
    "ContentItem",
    "CreateContentPayload",
    "ItemStatus",
    "MediaAsset",
    "SiteConnection",
    "TaxonomyTerm",
    "TransferState",
]
