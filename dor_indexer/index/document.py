"""Build the Solr document for a single druid.

The MODS is flattened wholesale; on top of that come the fields every
record in the repository carries (druid, purl url, access/building facets),
a display type derived from the contentMetadata, and the ids of the files
a viewer should show.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from dor_indexer.errors import BuildFailure
from dor_indexer.harvest.records import NS, RawRecord
from dor_indexer.index.fields import FieldMap
from dor_indexer.parse.flatten import element_text, flatten_document

logger = logging.getLogger(__name__)

ACCESS_FACET = "Online"
BUILDING_FACET = "Stanford Digital Repository"
COLLECTION_TYPE = "Digital Collection"
COLLECTION_FORMAT = "Archive/Manuscript"

DISPLAY_TYPES = {
    "book": "book",
    "image": "image",
    "manuscript": "image",
    "map": "image",
    "media": "media",
}
VALID_DISPLAY_TYPE = re.compile(r"(file)|(image)|(media)|(book)|(collection)")


def display_type(content_metadata, is_collection: bool = False) -> str:
    if is_collection:
        return "collection"
    if content_metadata is None:
        return "file"
    content_type = (content_metadata.get("type") or "").strip().lower()
    return DISPLAY_TYPES.get(content_type, "file")


def file_ids(content_metadata, display: str) -> List[str]:
    if content_metadata is None:
        return []
    if display == "image":
        nodes = content_metadata.xpath('resource/file[@mimetype="image/jp2"]/@id')
    elif display == "file":
        nodes = content_metadata.xpath("resource/file/@id")
    else:
        return []
    return [str(n).strip() for n in nodes if str(n).strip()]


def title_display(mods) -> Optional[str]:
    for el in mods.xpath("mods:titleInfo/mods:title | titleInfo/title", namespaces=NS):
        text = element_text(el)
        if text:
            return text
    return None


def _present(fields: FieldMap, name: str, expected=None) -> bool:
    values = fields.get(name)
    if not values:
        return False
    if expected is None:
        return True
    if isinstance(expected, re.Pattern):
        return any(expected.search(v) for v in values)
    return expected in values


class RecordBuilder:
    def __init__(self, purl_base_url: str):
        self.purl_base_url = purl_base_url.rstrip("/")

    def purl_url(self, druid: str) -> str:
        return f"{self.purl_base_url}/{druid}"

    def build(self, record: RawRecord, display=None) -> FieldMap:
        """Solr fields for ``record``; ``display`` overrides the computed display type."""
        if record.mods is None:
            raise BuildFailure(f"{record.identifier} has no MODS")

        druid = record.identifier
        doc = flatten_document(record.mods)
        doc.set("id", druid)
        doc.set("druid", druid)
        doc.set("url_fulltext", self.purl_url(druid))
        doc.set("access_facet", ACCESS_FACET)
        doc.set("building_facet", BUILDING_FACET)
        doc.set("modsxml", record.mods_xml)
        doc.set("title_display", title_display(record.mods) or "")

        if record.is_collection:
            doc.set("collection_type", COLLECTION_TYPE)
            doc.set("format_main_ssim", COLLECTION_FORMAT)
            doc.set("display_type", display or display_type(None, is_collection=True))
        else:
            display = display or display_type(record.content_metadata)
            doc.set("display_type", display)
            doc.set("file_id", file_ids(record.content_metadata, display))
        logger.debug("Built %s fields for %s", len(doc), druid)
        return doc

    def validate(self, doc: FieldMap, is_collection: bool = False) -> List[str]:
        """Human readable messages for expected fields that are missing."""
        druid = doc.first("id") or doc.first("druid") or "unknown"
        result: List[str] = []
        if not _present(doc, "druid", druid):
            result.append(f"{druid} missing druid field")
        if not _present(doc, "url_fulltext", self.purl_url(druid)):
            result.append(f"{druid} missing url_fulltext for purl")
        if not _present(doc, "access_facet", ACCESS_FACET):
            result.append(f"{druid} missing access_facet '{ACCESS_FACET}'")
        if not _present(doc, "display_type", VALID_DISPLAY_TYPE):
            result.append(
                f"{druid} missing or bad display_type, possibly caused by "
                "unrecognized @type attribute on <contentMetadata>"
            )
        if not _present(doc, "building_facet", BUILDING_FACET):
            result.append(f"{druid} missing building_facet '{BUILDING_FACET}'")
        if not _present(doc, "modsxml"):
            result.append(f"{druid} missing modsxml")
        if not _present(doc, "title_display"):
            result.append(f"{druid} missing title")

        if is_collection:
            if not _present(doc, "collection_type", COLLECTION_TYPE):
                result.append(f"{druid} missing collection_type '{COLLECTION_TYPE}'")
            return result

        if not _present(doc, "collection"):
            result.append(f"{druid} missing collection")
        for coll_id in doc.get("collection"):
            with_title = re.compile(re.escape(coll_id) + r"-\|-.+")
            if not _present(doc, "collection_with_title", with_title):
                result.append(
                    f"{druid} missing collection_with_title "
                    f"(or collection {coll_id} is missing title)"
                )
        if not _present(doc, "file_id"):
            result.append(f"{druid} missing file_id(s)")
        return result
