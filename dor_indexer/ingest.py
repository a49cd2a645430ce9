import argparse
import importlib.util
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

# --- Imports Check ---
REQUIRED_MODULES = {
    "yaml": "PyYAML",
    "requests": "requests",
    "tqdm": "tqdm",
    "sickle": "sickle",
    "lxml": "lxml",
    "pydantic": "pydantic",
}

missing = [pkg for mod, pkg in REQUIRED_MODULES.items() if importlib.util.find_spec(mod) is None]
if missing:
    joined = ", ".join(sorted(set(missing)))
    raise SystemExit(
        f"Missing dependencies detected ({joined}). Run `python -m pip install -e .` first."
    )
# --- End Imports Check ---

from dor_indexer.config import IndexerConfig, load_config, load_id_list
from dor_indexer.errors import IndexerError
from dor_indexer.harvest.oai_pmh import harvest_source_from_config
from dor_indexer.index.document import RecordBuilder
from dor_indexer.index.run import IndexingRun, Orchestrator
from dor_indexer.index.solr import solr_index_from_config
from dor_indexer.notify.mail import notifier_from_config

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def log_and_print(message: str, *args):
    text = message % args if args else message
    logger.info(text)
    print(text)


def configure_logging(cfg: IndexerConfig) -> None:
    Path(cfg.log_dir).mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=cfg.level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        filename=str(cfg.log_path),
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dor-indexer",
        description="Harvest druids via OAI-PMH and index their MODS into Solr",
    )
    parser.add_argument("--config", default="indexer.yaml", help="YAML config file")
    parser.add_argument("--nocommit", action="store_true", help="Submit documents but skip the Solr commit")
    parser.add_argument("--workers", type=int, default=None, help="Druids to index concurrently (default from config)")
    return parser


def build_orchestrator(cfg: IndexerConfig, workers: Optional[int] = None) -> Orchestrator:
    """Resolve id lists and connect collaborators; raises IndexerError if the batch cannot start."""
    whitelist = load_id_list(cfg.whitelist) if cfg.whitelist else None
    blacklist = load_id_list(cfg.blacklist) if cfg.blacklist else []

    index = solr_index_from_config(cfg)
    index.ping()

    return Orchestrator(
        source=harvest_source_from_config(cfg),
        index=index,
        builder=RecordBuilder(cfg.harvest.purl),
        run=IndexingRun(whitelist=whitelist, blacklist=blacklist),
        notifier=notifier_from_config(cfg),
        recipients=cfg.notification.recipients,
        run_name=cfg.run_name,
        log_path=str(cfg.log_path),
        workers=workers or cfg.workers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
    except IndexerError as e:
        print(str(e), file=sys.stderr)
        return 1
    configure_logging(cfg)

    try:
        orchestrator = build_orchestrator(cfg, workers=args.workers)
    except IndexerError as e:
        logger.critical("Unable to start batch: %s", e)
        print(f"Unable to start batch: {e}", file=sys.stderr)
        return 1

    def _shutdown(signum, _frame):
        logger.warning("Received signal %s", signum)
        orchestrator.request_shutdown()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    nocommit = args.nocommit or cfg.nocommit
    log_and_print("Starting harvest for %s nocommit=%s", cfg.run_name, nocommit)
    try:
        run = orchestrator.harvest_and_index(nocommit=nocommit)
    except IndexerError as e:
        logger.critical("Unable to start batch: %s", e)
        print(f"Unable to start batch: {e}", file=sys.stderr)
        return 1

    log_and_print(
        "Done. Indexed %s of an estimated %s records; %s failed. Full log at %s",
        run.submitted,
        run.estimated,
        len(run.failed),
        cfg.log_path,
    )
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
