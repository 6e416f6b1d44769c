"""
Sequential batch transfer with per-item status tracking.

A :class:`BatchController` belongs to one (source, destination, content
type) pairing and keeps an in-memory :class:`ItemStatus` per source item
id.  Items move ``idle -> exporting -> success | error``; an errored item
may be exported again, but an item already exporting may not.

Selected items are transferred one at a time in selection order.  A
failing item records its error and the batch moves on; the batch is done
when every selected item has reached ``success`` or ``error``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from wp_migrator.extractors.wordpress_extractor import get_full_content_details
from wp_migrator.migrators.content_transfer import transfer_content
from wp_migrator.models.wp_content import (
    ContentItem,
    ItemStatus,
    SiteConnection,
    TransferState,
)

logger = logging.getLogger(__name__)

StatusListener = Callable[[int, ItemStatus], None]


class TransferInProgressError(RuntimeError):
    """Raised when an item is submitted while its previous transfer is running."""

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Item {item_id} is already being exported")
        self.item_id = item_id


@dataclass
class BatchResult:
    item_ids: List[int]
    statuses: Dict[int, ItemStatus] = field(default_factory=dict)

    @property
    def succeeded(self) -> List[int]:
        return [i for i in self.item_ids if self.statuses[i].state is TransferState.SUCCESS]

    @property
    def failed(self) -> List[int]:
        return [i for i in self.item_ids if self.statuses[i].state is TransferState.ERROR]

    @property
    def done(self) -> bool:
        return all(self.statuses[i].state.is_terminal for i in self.item_ids)


class BatchController:
    def __init__(
        self,
        source: SiteConnection,
        destination: SiteConnection,
        content_type: str = "posts",
        *,
        skip_image_transfer: bool = False,
        on_status: Optional[StatusListener] = None,
    ) -> None:
        self.source = source
        self.destination = destination
        self.content_type = content_type
        self.skip_image_transfer = skip_image_transfer
        self.on_status = on_status
        self.statuses: Dict[int, ItemStatus] = {}
        self.created: Dict[int, dict] = {}
        self.errors: Dict[int, BaseException] = {}
        self._lock = threading.Lock()

    def status_of(self, item_id: int) -> ItemStatus:
        return self.statuses.get(item_id, ItemStatus())

    def _set_status(self, item_id: int, state: TransferState, message: Optional[str] = None) -> ItemStatus:
        status = ItemStatus(state=state, message=message)
        self.statuses[item_id] = status
        if self.on_status:
            self.on_status(item_id, status)
        return status

    def _begin(self, item_id: int) -> None:
        with self._lock:
            if self.status_of(item_id).state is TransferState.EXPORTING:
                raise TransferInProgressError(item_id)
            self._set_status(item_id, TransferState.EXPORTING)

    def _transfer(self, item: ContentItem) -> None:
        created = transfer_content(
            item,
            self.content_type,
            self.source,
            self.destination,
            skip_image_transfer=self.skip_image_transfer,
        )
        if isinstance(created, dict):
            self.created[item.id] = created

    def export_item(self, item_id: int) -> ItemStatus:
        """Re-fetch ``item_id`` from the source and transfer it.

        Failures are recorded in the returned status, never raised.

        :raises TransferInProgressError: if the item is already exporting.
        """
        self._begin(item_id)
        try:
            item = get_full_content_details(item_id, self.content_type, self.source)
            self._transfer(item)
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc)
            logger.error("Failed to export %s %s: %s", self.content_type, item_id, message)
            self.errors[item_id] = exc
            return self._set_status(item_id, TransferState.ERROR, message)
        return self._set_status(item_id, TransferState.SUCCESS)

    def export_edited(self, item: ContentItem) -> ItemStatus:
        """Transfer an already loaded (typically edited) item.

        Unlike :meth:`export_item` the failure is re-raised after being
        recorded, so an editor can show it next to the unsaved changes.
        """
        self._begin(item.id)
        try:
            self._transfer(item)
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc)
            logger.error("Failed to export edited %s %s: %s", self.content_type, item.id, message)
            self.errors[item.id] = exc
            self._set_status(item.id, TransferState.ERROR, message)
            raise
        return self._set_status(item.id, TransferState.SUCCESS)

    def export_selected(self, item_ids: Iterable[int]) -> BatchResult:
        """Transfer ``item_ids`` sequentially and return the final statuses.

        Duplicate ids are exported once, at their first position.
        """
        ordered = list(dict.fromkeys(item_ids))
        logger.info("Exporting %d %s", len(ordered), self.content_type)
        for item_id in ordered:
            try:
                self.export_item(item_id)
            except TransferInProgressError:
                logger.warning("Skipping %s %s: already exporting", self.content_type, item_id)
        result = BatchResult(item_ids=ordered, statuses={i: self.statuses[i] for i in ordered})
        logger.info(
            "Batch finished: %d succeeded, %d failed", len(result.succeeded), len(result.failed)
        )
        return result
