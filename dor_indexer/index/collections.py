from __future__ import annotations

from typing import Sequence

from dor_indexer.harvest.records import CollectionDescriptor
from dor_indexer.index.fields import FieldMap

TITLE_SEPARATOR = "-|-"


def merge(doc: FieldMap, parents: Sequence[CollectionDescriptor]) -> FieldMap:
    """Fold the parent collections of an item into its document.

    With no parents the document is returned as is. Otherwise a copy gets
    one ``collection`` and one ``collection_with_title`` value per parent, in
    the order given. ``display_type`` is only taken from a parent when the
    item has none of its own; the batch builder always sets one for items,
    so this fallback applies to documents built by other callers.
    """
    if not parents:
        return doc

    merged = doc.copy()
    for parent in parents:
        merged.add("collection", parent.identifier)
        merged.add("collection_with_title", f"{parent.identifier}{TITLE_SEPARATOR}{parent.title}")

    if "display_type" not in merged:
        for parent in parents:
            if parent.display_type:
                merged.set("display_type", parent.display_type)
                break
    return merged
