import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import requests

from dor_indexer.errors import IndexerError, SubmitFailure
from dor_indexer.index.fields import FieldMap

logger = logging.getLogger(__name__)

DEFAULT_ROWS = 1000


def resolve_solr_url(configured: Optional[str] = None) -> str:
    # Treat empty/whitespace values as unset so a blank config entry falls
    # through to SOLR_URL and then the local default core.
    for raw in (configured, os.environ.get("SOLR_URL")):
        raw = (raw or "").strip()
        if raw:
            return raw.rstrip("/")
    return "http://localhost:8983/solr/collection1"


@dataclass
class QueryResult:
    count: int
    ids: List[str] = field(default_factory=list)


class SolrIndex:
    """Minimal Solr client: JSON update handler for adds and commits, select for counts."""

    def __init__(self, url: Optional[str] = None, timeout: int = 60):
        self.url = resolve_solr_url(url)
        self.timeout = timeout

    def _update(self, payload: Any, **params: str) -> Dict[str, Any]:
        params.setdefault("wt", "json")
        try:
            resp = requests.post(f"{self.url}/update", params=params, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise SubmitFailure(f"Solr update request to {self.url} failed: {e}") from e
        if not resp.ok:
            raise SubmitFailure(f"Solr error {resp.status_code}: {resp.text}")
        try:
            return resp.json()
        except ValueError as e:
            raise SubmitFailure(f"Solr at {self.url} answered with a non-JSON body: {e}") from e

    def ping(self) -> None:
        try:
            resp = requests.get(f"{self.url}/admin/ping", params={"wt": "json"}, timeout=self.timeout)
        except requests.RequestException as e:
            raise IndexerError(f"Solr at {self.url} is unreachable: {e}") from e
        if not resp.ok:
            raise IndexerError(f"Solr at {self.url} answered ping with {resp.status_code}")

    def submit(self, druid: str, doc: FieldMap) -> None:
        self._update([doc.to_dict()])
        logger.debug("Added Solr doc for %s", druid)

    def commit(self) -> None:
        self._update({"commit": {}})

    def query(self, filters: Mapping[str, str], rows: int = DEFAULT_ROWS) -> QueryResult:
        params = {
            "q": "*:*",
            "fq": [f'{k}:"{v}"' for k, v in filters.items()],
            "fl": "id",
            "rows": rows,
            "start": 0,
            "wt": "json",
        }
        try:
            resp = requests.get(f"{self.url}/select", params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise IndexerError(f"Solr select request to {self.url} failed: {e}") from e
        if not resp.ok:
            raise IndexerError(f"Solr error {resp.status_code}: {resp.text}")
        try:
            body = resp.json().get("response", {})
        except ValueError as e:
            raise IndexerError(f"Solr at {self.url} answered with a non-JSON body: {e}") from e
        ids = [d["id"] for d in body.get("docs", []) if "id" in d]
        return QueryResult(count=int(body.get("numFound", 0)), ids=ids)

    def num_found(self, **filters: str) -> int:
        """Documents matching ``filters``; a collection filter also counts the collection record."""
        count = self.query(filters).count
        if "collection" in filters:
            count += self.query({"id": filters["collection"]}).count
        return count


def solr_index_from_config(cfg) -> SolrIndex:
    index = SolrIndex(url=cfg.solr.url, timeout=cfg.solr.timeout)
    logger.info("Using Solr core %s", index.url)
    return index
