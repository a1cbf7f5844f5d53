import dataclasses
import sys
from datetime import datetime
from pathlib import Path

import fncli
import pytest

from cadence import config, db
from cadence.core.errors import CadenceError
from cadence.lib import clock


@pytest.fixture
def tmp_cadence_dir(tmp_path, monkeypatch):
    """Point every cadence path at a throwaway directory."""
    base = tmp_path / ".cadence"
    monkeypatch.setattr(config, "CADENCE_DIR", base)
    monkeypatch.setattr(config, "DB_PATH", base / "cadence.db")
    monkeypatch.setattr(config, "CONFIG_PATH", base / "config.yaml")
    monkeypatch.setattr(config, "LOG_PATH", base / "cadence.log")
    monkeypatch.setattr(config, "BACKUP_DIR", base / "backups")
    config.Config.reset()
    yield base
    config.Config.reset()


@pytest.fixture
def store(tmp_cadence_dir):
    with db.open_store(config.DB_PATH) as s:
        yield s


@pytest.fixture
def freeze(monkeypatch):
    """Pin clock.now(). Call with a datetime or an ISO string; call again to move time."""

    def _freeze(moment: datetime | str) -> datetime:
        fixed = datetime.fromisoformat(moment) if isinstance(moment, str) else moment
        monkeypatch.setattr(clock, "now", lambda: fixed)
        return fixed

    return _freeze


@dataclasses.dataclass
class Result:
    exit_code: int
    stdout: str
    stderr: str


_discovered = False


class FnCLIRunner:
    def __init__(self, capsys):
        self.capsys = capsys

    def invoke(self, args: list[str]) -> Result:
        global _discovered
        db.init()
        if not _discovered:
            fncli.autodiscover(Path(db.__file__).parent, "cadence")
            _discovered = True
        self.capsys.readouterr()
        code = 0
        try:
            code = fncli.dispatch(["cadence", *args]) or 0
        except CadenceError as e:
            sys.stderr.write(f"{e}\n")
            code = 1
        except SystemExit as e:
            code = e.code if isinstance(e.code, int) else 1
        captured = self.capsys.readouterr()
        return Result(exit_code=code, stdout=captured.out, stderr=captured.err)


@pytest.fixture
def runner(tmp_cadence_dir, capsys):
    return FnCLIRunner(capsys)
