from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from lxml import etree

NS = {
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "fedora": "info:fedora/fedora-system:def/relations-external#",
    "mods": "http://www.loc.gov/mods/v3",
}


def _text(el):
    return (el.text or "").strip()


def _first(xpath, root, ns=None):
    res = root.xpath(xpath, namespaces=ns or {})
    return res[0] if res else None


def bare_druid(identifier: str) -> str:
    """'oai:host:druid:oo000oo0000' / 'info:fedora/druid:oo000oo0000' -> 'oo000oo0000'."""
    identifier = (identifier or "").strip()
    if "druid:" in identifier:
        identifier = identifier.split("druid:")[-1]
    return identifier


@dataclass(frozen=True)
class CollectionDescriptor:
    """What an item needs to know about one of its parent collections."""

    identifier: str
    title: str = ""
    is_member: bool = False
    display_type: Optional[str] = None


@dataclass(frozen=True)
class RawRecord:
    """The XML documents fetched for one druid. Never modified after fetch."""

    identifier: str
    mods: Optional[Any] = None
    public_xml: Optional[Any] = None
    content_metadata: Optional[Any] = None

    @classmethod
    def from_public_xml(cls, identifier: str, public_xml, mods=None) -> "RawRecord":
        content_md = None
        if public_xml is not None:
            content_md = _first("contentMetadata", public_xml)
            if mods is None:
                mods = _first("mods:mods", public_xml, NS)
        return cls(
            identifier=bare_druid(identifier),
            mods=mods,
            public_xml=public_xml,
            content_metadata=content_md,
        )

    @property
    def mods_xml(self) -> Optional[str]:
        if self.mods is None:
            return None
        return etree.tostring(self.mods, encoding="unicode")

    @property
    def object_type(self) -> Optional[str]:
        if self.public_xml is None:
            return None
        el = _first("identityMetadata/objectType", self.public_xml)
        return _text(el).lower() if el is not None else None

    @property
    def is_collection(self) -> bool:
        return self.object_type == "collection"

    @property
    def label(self) -> str:
        if self.public_xml is None:
            return ""
        el = _first("identityMetadata/objectLabel", self.public_xml)
        return _text(el) if el is not None else ""

    @property
    def parent_ids(self) -> List[str]:
        if self.public_xml is None:
            return []
        resources = self.public_xml.xpath(
            "rdf:RDF/rdf:Description/fedora:isMemberOfCollection/@rdf:resource",
            namespaces=NS,
        )
        return [bare_druid(str(r)) for r in resources if str(r).strip()]

    def collection_descriptor(self, display_type: Optional[str] = None) -> CollectionDescriptor:
        return CollectionDescriptor(
            identifier=self.identifier,
            title=self.label,
            is_member=bool(self.parent_ids),
            display_type=display_type,
        )
