"""Indexer configuration loaded from a YAML file."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dor_indexer.errors import ConfigError, IdListError

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


class HarvestConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    oai_url: str
    purl: str = "https://purl.stanford.edu"
    metadata_prefix: str = "mods"
    set_spec: Optional[str] = Field(default=None, alias="set")
    since: Optional[str] = None
    until: Optional[str] = None
    timeout: int = Field(60, ge=1)


class SolrConfig(BaseModel):
    url: Optional[str] = None
    timeout: int = Field(60, ge=1)


class NotificationConfig(BaseModel):
    recipients: List[str] = Field(default_factory=list)
    sender: str = "dor-indexer@localhost"
    smtp_host: str = "localhost"
    smtp_port: int = 25

    @field_validator("recipients", mode="before")
    @classmethod
    def _split_recipients(cls, v):
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return v or []


class IndexerConfig(BaseModel):
    harvest: HarvestConfig
    solr: SolrConfig = Field(default_factory=SolrConfig)
    whitelist: Optional[str] = None
    blacklist: Optional[str] = None
    log_dir: str = "logs"
    log_name: str = "dor_indexer.log"
    log_level: str = "info"
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    nocommit: bool = False
    workers: int = Field(1, ge=1)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = (v or "info").strip().lower()
        if v not in LOG_LEVELS:
            raise ValueError(f"unknown log_level {v!r}; use one of {', '.join(sorted(LOG_LEVELS))}")
        return v

    @property
    def log_path(self) -> Path:
        return Path(self.log_dir) / self.log_name

    @property
    def run_name(self) -> str:
        name = self.log_name
        return name[: -len(".log")] if name.endswith(".log") else name

    @property
    def level(self) -> int:
        return LOG_LEVELS[self.log_level]


def load_config(path: str) -> IndexerConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to read config {path}: {e}") from e
    try:
        return IndexerConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e


def load_id_list(path: str) -> List[str]:
    """One druid per line; all whitespace removed, blank lines dropped."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as e:
        msg = f"Unable to find list of druids at {path}"
        logger.critical(msg)
        raise IdListError(msg) from e
    ids = ["".join(line.split()) for line in lines]
    return [x for x in ids if x]
