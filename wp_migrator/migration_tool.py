"""
High-level orchestration of a WordPress → WordPress content migration.

This module defines a :class:`WordPressMigrationTool` class that ties
together connection validation, content retrieval and the batch transfer
into one object.  It reads configuration, sets up logging, builds the
source and destination :class:`SiteConnection` values and records the
outcome of each item in the JSON Lines reports of
:mod:`wp_migrator.utils.errors`.

Configuration is supplied via a JSON file path or directly as a
dictionary.  The ``source`` and ``destination`` sections take ``url``,
``username`` and ``application_password`` (or a ready-made ``token``),
plus an optional ``proxy_url`` and ``name``.  Migration settings live
under the ``migration`` key.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from wp_migrator.batch import BatchController, BatchResult
from wp_migrator.extractors.wordpress_extractor import ProgressCallback, fetch_content
from wp_migrator.models.wp_content import CONTENT_TYPES, ContentItem, ItemStatus, SiteConnection, TransferState
from wp_migrator.utils.errors import DEFAULT_REPORT_DIR, event_code_for, report_error, report_ok
from wp_migrator.utils.log import setup_logging
from wp_migrator.utils.pre_flight_checks import validate_connection

DEFAULT_CONFIG_FILE = os.path.join("config", "migration_config.json")

_ENV_PREFIXES = {"source": "WP_SOURCE", "destination": "WP_DEST"}


class WordPressMigrationTool:
    """
    Encapsulates the state needed to migrate content between two
    WordPress sites: configuration, the two connections, the fetched
    source items and the batch controller holding per-item statuses.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        log_to_file: bool = True,
    ) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            config = {}

        for section, prefix in _ENV_PREFIXES.items():
            site = config.setdefault(section, {})
            site.setdefault("url", os.getenv(f"{prefix}_URL", ""))
            site.setdefault("username", os.getenv(f"{prefix}_USERNAME", ""))
            site.setdefault("application_password", os.getenv(f"{prefix}_APP_PASSWORD", ""))
            site.setdefault("token", "")
            site.setdefault("proxy_url", os.getenv(f"{prefix}_PROXY_URL", ""))
            site.setdefault("name", "")

        config.setdefault("migration", {})
        config["migration"].setdefault("content_type", "posts")
        config["migration"].setdefault("skip_image_transfer", False)
        config["migration"].setdefault("item_ids", [])
        config["migration"].setdefault("limit", None)
        config["migration"].setdefault("log_level", "INFO")
        config["migration"].setdefault("report_dir", DEFAULT_REPORT_DIR)

        if config["migration"]["content_type"] not in CONTENT_TYPES:
            raise ValueError(
                f"migration.content_type must be one of {CONTENT_TYPES}, "
                f"got {config['migration']['content_type']!r}"
            )

        self.config = config
        self.report_dir: str = config["migration"]["report_dir"]
        log_file = os.path.join(self.report_dir, "migration.log") if log_to_file else None
        self.logger = setup_logging(config["migration"]["log_level"], log_file)

        self.source: Optional[SiteConnection] = None
        self.destination: Optional[SiteConnection] = None
        self.items: List[ContentItem] = []
        self.controller: Optional[BatchController] = None

    @property
    def content_type(self) -> str:
        return self.config["migration"]["content_type"]

    def log_message(self, message: str, level: str = "INFO") -> None:
        self.logger.log(getattr(logging, level.upper(), logging.INFO), message)

    def build_connection(self, section: str) -> SiteConnection:
        """Build the :class:`SiteConnection` described by ``config[section]``."""
        site = self.config.get(section) or {}
        url = (site.get("url") or "").strip()
        if not url:
            raise ValueError(f"'{section}.url' is not configured.")
        if site.get("token"):
            return SiteConnection(
                base_url=url,
                token=site["token"],
                proxy_url=site.get("proxy_url"),
                display_name=site.get("name") or url,
            )
        if not site.get("username") or not site.get("application_password"):
            raise ValueError(
                f"'{section}' needs either a token or a username and application_password."
            )
        return SiteConnection.from_credentials(
            url,
            site["username"],
            site["application_password"],
            proxy_url=site.get("proxy_url"),
            name=site.get("name") or None,
        )

    def connect(self) -> None:
        """Build and validate both connections.

        A new pairing starts with a fresh batch controller, so no status
        from a previous pairing carries over.
        """
        source = self.build_connection("source")
        destination = self.build_connection("destination")
        self.log_message(f"Validating source site {source.base_url}")
        validate_connection(source)
        self.log_message(f"Validating destination site {destination.base_url}")
        validate_connection(destination)
        self.source, self.destination = source, destination
        self.controller = BatchController(
            source,
            destination,
            self.content_type,
            skip_image_transfer=bool(self.config["migration"]["skip_image_transfer"]),
            on_status=self._record_status,
        )

    def _require_connections(self) -> BatchController:
        if self.controller is None or self.source is None:
            raise RuntimeError("Call connect() before fetching or migrating content.")
        return self.controller

    def fetch_items(self, on_progress: Optional[ProgressCallback] = None) -> List[ContentItem]:
        self._require_connections()
        self.log_message(f"Fetching {self.content_type} from {self.source.base_url}")
        self.items = fetch_content(self.source, self.content_type, on_progress)
        self.log_message(f"Found a total of {len(self.items)} {self.content_type}.")
        return self.items

    def selected_ids(self, item_ids: Optional[Iterable[int]] = None) -> List[int]:
        """Resolve the ids to migrate: explicit ids, else configured ids, else every fetched item."""
        ids = list(item_ids or self.config["migration"]["item_ids"] or [item.id for item in self.items])
        limit = self.config["migration"]["limit"]
        if limit is not None:
            ids = ids[: int(limit)]
        return ids

    def _item_info(self, item_id: int) -> Dict[str, Any]:
        for item in self.items:
            if item.id == item_id:
                return {"id": item_id, "title": item.plain_title}
        return {"id": item_id, "title": None}

    def _record_status(self, item_id: int, status: ItemStatus) -> None:
        if status.state is TransferState.EXPORTING:
            self.log_message(f"Migrating {self.content_type} {item_id}")
            return
        info = self._item_info(item_id)
        if status.state is TransferState.SUCCESS:
            created = self.controller.created.get(item_id, {}) if self.controller else {}
            report_ok(
                "TRANSFERRED",
                info,
                {"new_id": created.get("id"), "new_link": created.get("link")},
                report_dir=self.report_dir,
            )

    def migrate(self, item_ids: Optional[Iterable[int]] = None) -> BatchResult:
        """Transfer the selected items and write one report entry per failure."""
        controller = self._require_connections()
        ids = self.selected_ids(item_ids)
        result = controller.export_selected(ids)
        for item_id in result.failed:
            exc = controller.errors.get(item_id) or RuntimeError(result.statuses[item_id].message or "")
            report_error(
                event_code_for(exc),
                self._item_info(item_id),
                exc,
                report_dir=self.report_dir,
            )
        self.log_message("Migration process finished.")
        return result

