from __future__ import annotations

import base64
import enum
from pathlib import PurePosixPath
from typing import Any, Literal, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field, field_validator

ContentStatus = Literal["publish", "future", "draft", "pending", "private"]
ContentType = Literal["posts", "pages"]
CONTENT_TYPES = ("posts", "pages")


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class SiteConnection(BaseModel):
    """A validated pair of site URL and Basic-auth token.

    The token is ``base64("username:application_password")`` and is treated
    as opaque by everything below the facade.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    base_url: str = Field(..., min_length=1, alias="url")
    token: str
    proxy_url: Optional[str] = Field(None, alias="proxyUrl")
    display_name: str = Field("", alias="name")

    @field_validator("base_url", mode="before")
    @classmethod
    def _trim_base_url(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")

    @field_validator("proxy_url", mode="before")
    @classmethod
    def _normalize_proxy(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @classmethod
    def from_credentials(
        cls,
        url: str,
        username: str,
        application_password: str,
        *,
        proxy_url: Optional[str] = None,
        name: Optional[str] = None,
    ) -> "SiteConnection":
        raw = f"{username}:{application_password}".encode("utf-8")
        token = base64.b64encode(raw).decode("ascii")
        return cls(
            base_url=url,
            token=token,
            proxy_url=proxy_url,
            display_name=name or f"{username}@{urlparse(url).netloc or url}",
        )

    @property
    def rest_root(self) -> str:
        return f"{self.base_url}/wp-json/"

    @property
    def api_base(self) -> str:
        return f"{self.base_url}/wp-json/wp/v2"

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Basic {self.token}"}


class Rendered(BaseModel):
    model_config = ConfigDict(extra="allow")

    rendered: str = ""
    protected: Optional[bool] = None


class WpUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    name: str = ""
    link: Optional[str] = None


class MediaDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    file: Optional[str] = None


class WpMedia(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[int] = None
    source_url: str = ""
    mime_type: Optional[str] = None
    media_details: Optional[MediaDetails] = None


class WpTerm(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    name: str = ""
    slug: str = ""
    taxonomy: str = "category"


class Embedded(BaseModel):
    """Read-only snapshot of related objects returned with ``?_embed``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    author: Optional[list[WpUser]] = None
    featured_media: Optional[list[WpMedia]] = Field(None, alias="wp:featuredmedia")
    terms: Optional[list[list[WpTerm]]] = Field(None, alias="wp:term")

    @field_validator("featured_media", mode="before")
    @classmethod
    def _drop_error_media(cls, v: Any) -> Any:
        # Unreadable attachments are embedded as {"code": ..., "message": ...}
        if isinstance(v, list):
            return [m for m in v if isinstance(m, dict) and m.get("source_url")]
        return v


class ContentItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int
    title: Rendered = Field(default_factory=Rendered)
    content: Rendered = Field(default_factory=Rendered)
    status: ContentStatus = "draft"
    author: Optional[int] = None
    featured_media: Optional[int] = None
    categories: list[int] = Field(default_factory=list)
    tags: list[int] = Field(default_factory=list)
    parent: Optional[int] = None
    link: Optional[str] = None
    embedded: Embedded = Field(default_factory=Embedded, alias="_embedded")

    @property
    def title_html(self) -> str:
        return self.title.rendered

    @property
    def body_html(self) -> str:
        return self.content.rendered

    @property
    def plain_title(self) -> str:
        return BeautifulSoup(self.title.rendered or "", "html.parser").get_text().strip()

    @property
    def featured_media_embed(self) -> Optional[WpMedia]:
        media = self.embedded.featured_media or []
        return media[0] if media else None

    @property
    def embedded_terms(self) -> list[WpTerm]:
        return [term for group in (self.embedded.terms or []) for term in group]

    def with_edits(self, *, title: Optional[str] = None, body_html: Optional[str] = None) -> "ContentItem":
        update: dict[str, Any] = {}
        if title is not None:
            update["title"] = self.title.model_copy(update={"rendered": title})
        if body_html is not None:
            update["content"] = self.content.model_copy(update={"rendered": body_html})
        return self.model_copy(update=update)


class MediaAsset(BaseModel):
    """An asset to move between sites, identified only by URL and filename."""

    source_url: str = Field(..., min_length=1)
    filename: str
    mime_type: Optional[str] = None

    @classmethod
    def from_embedded(cls, media: WpMedia) -> "MediaAsset":
        filename = ""
        if media.media_details and media.media_details.file:
            filename = PurePosixPath(media.media_details.file).name
        if not filename:
            filename = PurePosixPath(urlparse(media.source_url).path).name or f"media-{media.id or 'upload'}"
        return cls(source_url=media.source_url, filename=filename, mime_type=media.mime_type)


class TaxonomyTerm(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    slug: str = Field(..., min_length=1)
    kind: Literal["category", "tag"]

    @classmethod
    def from_embedded(cls, term: WpTerm) -> "TaxonomyTerm":
        kind = "category" if term.taxonomy == "category" else "tag"
        return cls(name=term.name, slug=term.slug, kind=kind)


class CreateContentPayload(BaseModel):
    title: str
    content: str
    status: ContentStatus
    featured_media: Optional[int] = None
    categories: Optional[list[int]] = None
    tags: Optional[list[int]] = None
    parent: Optional[int] = None

    @classmethod
    def from_item(cls, item: ContentItem) -> "CreateContentPayload":
        return cls(title=item.title_html, content=item.body_html, status=item.status)

    def to_request_body(self) -> dict[str, Any]:
        body = self.model_dump(exclude_none=True)
        for key in ("categories", "tags"):
            if not body.get(key):
                body.pop(key, None)
        return body


class TransferState(str, enum.Enum):
    IDLE = "idle"
    EXPORTING = "exporting"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferState.SUCCESS, TransferState.ERROR)


class ItemStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: TransferState = TransferState.IDLE
    message: Optional[str] = None
