from __future__ import annotations

from typing import Iterable, List, Tuple

from wp_migrator.models.wp_content import ContentItem, TaxonomyTerm


def embedded_taxonomy_terms(item: ContentItem) -> List[TaxonomyTerm]:
    """
    Flatten the ``wp:term`` groups embedded in ``item`` into taxonomy terms.

    - Terms without a slug are skipped (the slug is the cross-site key)
    - Any taxonomy other than ``category`` is treated as a tag
    - Order is preserved; duplicates are kept for the resolver to converge on
    """
    return [TaxonomyTerm.from_embedded(term) for term in item.embedded_terms if term.slug]


def _dedup(ids: Iterable[int]) -> List[int]:
    seen = set()
    result: List[int] = []
    for term_id in ids:
        if term_id not in seen:
            seen.add(term_id)
            result.append(term_id)
    return result


def partition_term_ids(resolved: Iterable[Tuple[TaxonomyTerm, int]]) -> Tuple[List[int], List[int]]:
    """Split ``(term, destination_id)`` pairs into category ids and tag ids."""
    categories: List[int] = []
    tags: List[int] = []
    for term, term_id in resolved:
        (categories if term.kind == "category" else tags).append(term_id)
    return _dedup(categories), _dedup(tags)
