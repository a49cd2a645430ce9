"""Failure types raised while harvesting and indexing."""
from __future__ import annotations


class IndexerError(RuntimeError):
    """Base class for errors raised by the indexer."""


class ConfigError(IndexerError):
    """Raised when the YAML configuration cannot be read or is invalid."""


class IdListError(IndexerError):
    """Raised when a whitelist/blacklist file cannot be read."""


class FetchFailure(IndexerError):
    """Raw metadata for a record is unreachable or unparsable."""


class BuildFailure(IndexerError):
    """A fetched record could not be turned into a Solr document."""


class SubmitFailure(IndexerError):
    """Solr rejected a document or an update request."""
