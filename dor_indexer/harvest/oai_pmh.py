from __future__ import annotations

import logging
from typing import List, Optional

import requests
from lxml import etree
from sickle import Sickle
from sickle.oaiexceptions import NoRecordsMatch, OAIError

from dor_indexer.errors import FetchFailure
from dor_indexer.harvest.records import RawRecord, bare_druid

logger = logging.getLogger(__name__)

MEMBER_SET_PREFIX = "is_member_of_collection_"


class OaiHarvestSource:
    """Druids via OAI-PMH ListIdentifiers; public XML and MODS from the purl server."""

    def __init__(
        self,
        base_url: str,
        purl_base_url: str,
        metadata_prefix: str = "mods",
        set_spec: Optional[str] = None,
        since: Optional[str] = None,
        until: Optional[str] = None,
        timeout: int = 60,
    ):
        self.base_url = base_url
        self.purl_base_url = purl_base_url.rstrip("/")
        self.metadata_prefix = metadata_prefix
        self.set_spec = set_spec
        self.since = since
        self.until = until
        self.timeout = timeout

    def _identifiers(self, set_spec: Optional[str]) -> List[str]:
        sickle = Sickle(self.base_url, timeout=self.timeout)
        params = {"metadataPrefix": self.metadata_prefix}
        if set_spec:
            params["set"] = set_spec
        if self.since:
            params["from"] = self.since
        if self.until:
            params["until"] = self.until

        out: List[str] = []
        try:
            for header in sickle.ListIdentifiers(**params):
                if getattr(header, "deleted", False):
                    logger.debug("Skipping deleted OAI record %s", header.identifier)
                    continue
                druid = bare_druid(header.identifier)
                if druid:
                    out.append(druid)
        except NoRecordsMatch:
            logger.info("No OAI records for set=%s", set_spec)
        except (OAIError, requests.RequestException, etree.XMLSyntaxError) as e:
            raise FetchFailure(f"OAI-PMH harvest from {self.base_url} set={set_spec} failed: {e}") from e
        return out

    def list_identifiers(self) -> List[str]:
        druids = self._identifiers(self.set_spec)
        logger.info("Harvested %s druids from %s set=%s", len(druids), self.base_url, self.set_spec)
        return druids

    def fetch_collection_members(self, druid: str) -> List[str]:
        return self._identifiers(f"{MEMBER_SET_PREFIX}{bare_druid(druid)}")

    def _get_xml(self, url: str, required: bool = True):
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchFailure(f"Unable to fetch {url}: {e}") from e
        if resp.status_code == 404 and not required:
            return None
        if not resp.ok:
            raise FetchFailure(f"Unable to fetch {url}: HTTP {resp.status_code}")
        try:
            return etree.fromstring(resp.content)
        except etree.XMLSyntaxError as e:
            raise FetchFailure(f"Unparsable XML at {url}: {e}") from e

    def fetch_raw_record(self, druid: str) -> RawRecord:
        druid = bare_druid(druid)
        public_xml = self._get_xml(f"{self.purl_base_url}/{druid}.xml")
        mods = self._get_xml(f"{self.purl_base_url}/{druid}.mods", required=False)
        return RawRecord.from_public_xml(druid, public_xml, mods=mods)


def harvest_source_from_config(cfg) -> OaiHarvestSource:
    harvest = cfg.harvest
    return OaiHarvestSource(
        base_url=harvest.oai_url,
        purl_base_url=harvest.purl,
        metadata_prefix=harvest.metadata_prefix,
        set_spec=harvest.set_spec,
        since=harvest.since,
        until=harvest.until,
        timeout=harvest.timeout,
    )
