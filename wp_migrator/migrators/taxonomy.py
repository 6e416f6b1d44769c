"""
Category and tag resolution on the destination site.

Terms are matched across sites by slug.  :func:`resolve_term` always
looks the slug up first and only creates the term when the lookup comes
back empty, so repeated calls converge on one destination term.  The
lookup and the creation are two separate requests: another process
creating the same slug in between can still produce a duplicate.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from wp_migrator.migrators.wordpress_api import api_fetch, api_url
from wp_migrator.models.wp_content import SiteConnection, TaxonomyTerm

logger = logging.getLogger(__name__)

TAXONOMY_ENDPOINTS: Dict[str, str] = {
    "category": "categories",
    "tag": "tags",
}


def find_term(term: TaxonomyTerm, destination: SiteConnection) -> Optional[int]:
    """Return the id of the first destination term with ``term.slug``, or ``None``."""
    endpoint = TAXONOMY_ENDPOINTS[term.kind]
    existing = api_fetch(
        "GET",
        api_url(destination, endpoint),
        destination,
        params={"slug": term.slug},
    )
    if existing:
        return int(existing[0]["id"])
    return None


def create_term(term: TaxonomyTerm, destination: SiteConnection) -> int:
    endpoint = TAXONOMY_ENDPOINTS[term.kind]
    created = api_fetch(
        "POST",
        api_url(destination, endpoint),
        destination,
        json={"name": term.name, "slug": term.slug},
    )
    return int(created["id"])


def resolve_term(term: TaxonomyTerm, destination: SiteConnection) -> int:
    """Map ``term`` to a destination term id, creating the term if no slug matches."""
    term_id = find_term(term, destination)
    if term_id is not None:
        logger.debug("Found existing %s '%s' with ID: %s", term.kind, term.slug, term_id)
        return term_id
    logger.info("Creating new %s '%s' on %s", term.kind, term.slug, destination.base_url)
    term_id = create_term(term, destination)
    logger.debug("Created %s '%s' with ID: %s", term.kind, term.slug, term_id)
    return term_id


def resolve_terms(
    terms: Iterable[TaxonomyTerm], destination: SiteConnection
) -> List[Tuple[TaxonomyTerm, int]]:
    """Resolve ``terms`` one at a time, in order, stopping at the first failure."""
    return [(term, resolve_term(term, destination)) for term in terms]
