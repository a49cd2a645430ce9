from pathlib import Path

import pytest

from dor_indexer import ingest
from dor_indexer.errors import FetchFailure
from dor_indexer.index.run import IndexingRun


def _config(tmp_path: Path, extra: str = "") -> str:
    path = tmp_path / "indexer.yaml"
    path.write_text(
        "harvest:\n  oai_url: http://dor.example.org/oai\n"
        f"log_dir: {tmp_path / 'logs'}\nlog_name: testcoll.log\n" + extra,
        encoding="utf-8",
    )
    return str(path)


class FakeOrchestrator:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def request_shutdown(self):
        pass

    def harvest_and_index(self, nocommit=False):
        self.calls.append(nocommit)
        if self.error:
            raise self.error
        run = IndexingRun()
        run.record_failure("a", "boom")
        return run


@pytest.fixture(autouse=True)
def quiet(monkeypatch):
    monkeypatch.setattr(ingest, "configure_logging", lambda cfg: None)
    monkeypatch.setattr(ingest.signal, "signal", lambda *args: None)


def test_missing_config_cannot_start(tmp_path):
    assert ingest.main(["--config", str(tmp_path / "nope.yaml")]) == 1


def test_unreadable_whitelist_cannot_start(tmp_path):
    cfg = _config(tmp_path, f"whitelist: {tmp_path / 'missing.txt'}\n")
    assert ingest.main(["--config", cfg]) == 1


def test_completed_batch_exits_zero_even_with_record_failures(tmp_path, monkeypatch):
    fake = FakeOrchestrator()
    monkeypatch.setattr(ingest, "build_orchestrator", lambda cfg, workers=None: fake)

    assert ingest.main(["--config", _config(tmp_path), "--nocommit"]) == 0
    assert fake.calls == [True]


def test_nocommit_can_come_from_config(tmp_path, monkeypatch):
    fake = FakeOrchestrator()
    monkeypatch.setattr(ingest, "build_orchestrator", lambda cfg, workers=None: fake)

    assert ingest.main(["--config", _config(tmp_path, "nocommit: true\n")]) == 0
    assert fake.calls == [True]


def test_unreachable_harvest_source_exits_nonzero(tmp_path, monkeypatch):
    fake = FakeOrchestrator(error=FetchFailure("oai down"))
    monkeypatch.setattr(ingest, "build_orchestrator", lambda cfg, workers=None: fake)

    assert ingest.main(["--config", _config(tmp_path)]) == 1
