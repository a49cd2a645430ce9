"""Harvest-and-index batch: one pass over the druids, one Solr commit, one report.

Each druid is handled independently (fetch, build, merge collection info,
submit). A failure is logged and recorded against the druid and never stops
the batch. The only state shared between druids lives on ``IndexingRun``,
whose accumulators are lock-guarded so ``workers > 1`` can process druids
on a thread pool.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from dor_indexer.harvest.records import CollectionDescriptor, RawRecord
from dor_indexer.index.collections import merge
from dor_indexer.index.document import RecordBuilder
from dor_indexer.index.fields import FieldMap

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"


@dataclass(frozen=True)
class CollectionSummary:
    druid: str
    title: str
    expected_items: int


class IndexingRun:
    def __init__(self, whitelist: Optional[Sequence[str]] = None, blacklist: Iterable[str] = ()):
        self.whitelist: Optional[Tuple[str, ...]] = tuple(whitelist) if whitelist else None
        self.blacklist = frozenset(blacklist or ())
        self.failed: List[Tuple[str, str]] = []
        self.validation_messages: List[str] = []
        self.submitted = 0
        self.estimated = 0
        self.collections: Dict[str, CollectionSummary] = {}
        self.commit_error: Optional[str] = None
        self.started = time.monotonic()
        self._display_types: Dict[str, List[str]] = {}
        self._descriptors: Dict[str, CollectionDescriptor] = {}
        self._lock = threading.Lock()

    def is_excluded(self, druid: str) -> bool:
        return self.whitelist is None and druid in self.blacklist

    def record_failure(self, druid: str, reason: str) -> None:
        with self._lock:
            self.failed.append((druid, reason))

    def add_validation_messages(self, messages: Iterable[str]) -> None:
        with self._lock:
            self.validation_messages.extend(messages)

    def record_submitted(self) -> None:
        with self._lock:
            self.submitted += 1

    def add_estimate(self, count: int) -> None:
        with self._lock:
            self.estimated += count

    def record_collection(self, summary: CollectionSummary) -> None:
        with self._lock:
            self.collections[summary.druid] = summary

    def record_display_type(self, collection_druid: str, display: Optional[str]) -> None:
        if not display:
            return
        with self._lock:
            seen = self._display_types.setdefault(collection_druid, [])
            if display not in seen:
                seen.append(display)

    def display_types_for(self, collection_druid: str) -> List[str]:
        with self._lock:
            return list(self._display_types.get(collection_druid, []))

    def descriptor(self, druid: str, load: Callable[[str], CollectionDescriptor]) -> CollectionDescriptor:
        with self._lock:
            cached = self._descriptors.get(druid)
        if cached is not None:
            return cached
        desc = load(druid)
        with self._lock:
            self._descriptors.setdefault(druid, desc)
        return desc

    @property
    def failed_ids(self) -> List[str]:
        return [druid for druid, _ in self.failed]

    def elapsed_minutes(self) -> float:
        return (time.monotonic() - self.started) / 60


class Orchestrator:
    def __init__(
        self,
        source,
        index,
        builder: RecordBuilder,
        run: Optional[IndexingRun] = None,
        notifier=None,
        recipients: Sequence[str] = (),
        run_name: str = "dor_indexer",
        log_path: str = "",
        workers: int = 1,
    ):
        self.source = source
        self.index = index
        self.builder = builder
        self.run = run or IndexingRun()
        self.notifier = notifier
        self.recipients = list(recipients)
        self.run_name = run_name
        self.log_path = str(log_path)
        self.workers = max(1, workers)
        self._shutdown = threading.Event()

    def request_shutdown(self) -> None:
        """Let in-flight druids finish, start no new ones and skip the commit."""
        logger.warning("Shutdown requested; finishing in-flight records and skipping commit")
        self._shutdown.set()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    # --- identifier resolution -------------------------------------------------

    def resolve_identifiers(self) -> List[str]:
        if self.run.whitelist is not None:
            return [d for d in self.run.whitelist if not d.startswith(COMMENT_MARKER)]

        druids = []
        for druid in self.source.list_identifiers():
            if druid in self.run.blacklist:
                logger.info("Druid %s is on the blacklist and will have no Solr doc created", druid)
                continue
            druids.append(druid)
        return druids

    # --- estimation ------------------------------------------------------------

    def expected_count(self, record: RawRecord) -> int:
        """1 for the record itself, plus its members when it is a collection."""
        if not record.is_collection:
            return 1
        try:
            members = len(self.source.fetch_collection_members(record.identifier))
        except Exception as e:
            logger.warning("Unable to count members of collection %s: %s", record.identifier, e)
            return 1
        self.run.record_collection(CollectionSummary(record.identifier, record.label, members))
        return 1 + members

    def estimate(self, druids: Iterable[str]) -> int:
        total = 0
        for druid in druids:
            try:
                record = self.source.fetch_raw_record(druid)
            except Exception as e:
                logger.warning("Unable to classify %s for the estimate: %s", druid, e)
                total += 1
                continue
            total += self.expected_count(record)
        return total

    # --- per druid -------------------------------------------------------------

    def _load_descriptor(self, druid: str) -> CollectionDescriptor:
        return self.source.fetch_raw_record(druid).collection_descriptor()

    def build_document(self, record: RawRecord) -> FieldMap:
        if record.is_collection:
            display = self.run.display_types_for(record.identifier) or None
            doc = self.builder.build(record, display=display)
            messages = self.builder.validate(doc, is_collection=True)
        else:
            doc = self.builder.build(record)
            parents = [self.run.descriptor(pid, self._load_descriptor) for pid in record.parent_ids]
            doc = merge(doc, parents)
            for parent in parents:
                self.run.record_display_type(parent.identifier, doc.first("display_type"))
            messages = self.builder.validate(doc)
        self.run.add_validation_messages(messages)
        return doc

    def process(self, druid: str) -> bool:
        """Index one druid; False when it was skipped or failed."""
        if self.run.is_excluded(druid):
            logger.info("Druid %s is on the blacklist and will have no Solr doc created", druid)
            return False
        if self.shutdown_requested:
            logger.info("Not indexing %s; shutdown requested", druid)
            self.run.add_estimate(1)
            return False

        try:
            record = self.source.fetch_raw_record(druid)
        except Exception as e:
            self.run.add_estimate(1)
            self._fail(druid, e)
            return False

        self.run.add_estimate(self.expected_count(record))
        try:
            doc = self.build_document(record)
            self.index.submit(druid, doc)
        except Exception as e:
            self._fail(druid, e)
            return False

        self.run.record_submitted()
        logger.info("Just created Solr doc for %s", druid)
        return True

    def _fail(self, druid: str, error: Exception) -> None:
        self.run.record_failure(druid, f"{type(error).__name__}: {error}")
        logger.error("Failed to index item %s: %s", druid, error, exc_info=True)

    # --- batch -----------------------------------------------------------------

    def _process_all(self, druids: List[str]) -> None:
        if self.workers == 1:
            for druid in tqdm(druids, desc="Indexing"):
                self.process(druid)
            return

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [pool.submit(self.process, druid) for druid in druids]
            for future in tqdm(as_completed(futures), total=len(futures), desc="Indexing"):
                future.result()

    def commit(self, nocommit: bool = False) -> bool:
        if nocommit:
            logger.info("Skipping commit per nocommit flag")
            return False
        if self.shutdown_requested:
            logger.warning("Skipping commit; batch was shut down before completion")
            return False
        logger.info("Beginning Commit.")
        try:
            self.index.commit()
        except Exception as e:
            self.run.commit_error = str(e)
            logger.error("Solr commit failed: %s", e)
            return False
        logger.info("Finished Commit.")
        return True

    def harvest_and_index(self, nocommit: bool = False) -> IndexingRun:
        druids = self.resolve_identifiers()
        logger.info("Started harvest_and_index for %s druids", len(druids))

        try:
            self._process_all(druids)
            self.commit(nocommit)
        finally:
            logger.info(
                "Finished harvest_and_index in %.2f minutes", self.run.elapsed_minutes()
            )
            self.log_results()
            self.send_report()
        return self.run

    # --- reporting -------------------------------------------------------------

    def log_results(self) -> None:
        logger.info("Successful count (items + coll records indexed w/o error): %s", self.run.submitted)
        logger.info("Estimated count (items + coll records): %s", self.run.estimated)
        logger.info("Error count: %s", len(self.run.failed))
        logger.info("Validation message count: %s", len(self.run.validation_messages))

    def _found_in_index(self, druid: str) -> str:
        try:
            return str(self.index.num_found(collection=druid))
        except Exception as e:
            logger.warning("Unable to count Solr docs for collection %s: %s", druid, e)
            return "unknown"

    def report_body(self) -> str:
        solr_url = getattr(self.index, "url", "")
        lines: List[str] = []
        for coll in self.run.collections.values():
            lines.append(f"{self.run_name} indexed coll record is: {coll.druid}")
            lines.append(f"coll title: {coll.title}")
            lines.append(f"Solr query for items: {solr_url}/select?fq=collection:{coll.druid}&fl=id,title_display")
            lines.append(f"\t - Found {self._found_in_index(coll.druid)} items in Solr")
            lines.append(f"\t - Expected {coll.expected_items} items in Solr")
            lines.append("")

        lines.append(f"Successful count (items + coll records indexed w/o error): {self.run.submitted}")
        lines.append(f"Estimated count (items + coll records): {self.run.estimated}")
        lines.append(f"Total time to index: {self.run.elapsed_minutes():.2f} minutes")
        if self.run.commit_error:
            lines.append(f"Solr commit failed: {self.run.commit_error}")
        lines.append(f"{len(self.run.failed)} druids failed to index")
        body = "\n".join(lines) + "\n"

        if self.run.failed:
            body += "records that may have failed to index (merged recs as druids, not ckeys): \n"
            body += "\n".join(self.run.failed_ids) + "\n\n"
        body += f"full log is at {self.log_path}\n\n"
        if self.run.validation_messages:
            body += "\n".join(self.run.validation_messages) + "\n"
        return body

    def report_subject(self) -> str:
        return f"{self.run_name} into Solr server {getattr(self.index, 'url', '')} is finished"

    def send_report(self) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.send(self.report_body(), self.recipients, self.report_subject())
        except Exception as e:
            logger.error("Unable to send report: %s", e)
