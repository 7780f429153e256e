import json
from pathlib import Path

import pytest

from cli import main
from ingest.github import IngestionError
from normalize.models import UserActivity


class StubCollector:
    def __init__(self, data, failing=()):
        self.data = data
        self.failing = set(failing)

    def collect(self, owner, repo, since=None, until=None):
        if repo in self.failing:
            raise IngestionError("API unavailable")
        return self.data[repo]


DATA = {
    'alpha': {'alice': UserActivity(PR_fb=1, IS_doc=1), 'bob': UserActivity(PR_typo=2)},
    'beta': {'ALICE': UserActivity(PR_doc=1)},
    'gamma': {'carol': UserActivity(IS_fb=3)},
}


def test_cli_runs_batch_and_writes_total(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / 'results'
    argv = ['o/alpha', 'o/beta', 'o/gamma', 'bad-slug', '-o', str(out_dir), '-f', 'text', 'CSV']
    rc = main(argv, collector=StubCollector(DATA, failing={'beta'}))
    assert rc == 0

    assert (out_dir / 'alpha' / 'alpha.txt').exists()
    assert (out_dir / 'gamma' / 'gamma.csv').exists()
    assert not (out_dir / 'beta').exists()
    assert not (out_dir / 'alpha' / 'alpha.png').exists()
    # raw dumps always land under ./output
    assert (tmp_path / 'output' / 'alpha' / 'alpha2.txt').exists()

    total = (out_dir / 'total.txt').read_text(encoding='utf-8')
    assert 'alice' in total and 'carol' in total

    out = capsys.readouterr().out
    assert 'o/alpha' in out and 'o/gamma' in out
    assert '- bad-slug (expected owner/repo)' in out
    assert '- o/beta (could not collect activity: API unavailable)' in out


def test_cli_default_notices(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    rc = main(['o/gamma'], collector=StubCollector(DATA))
    assert rc == 0
    out = capsys.readouterr().out
    assert "using default 'output/'" in out
    assert "using default 'all'" in out
    for ext in ('txt', 'csv', 'png', 'html'):
        assert (tmp_path / 'output' / 'gamma' / f'gamma.{ext}').exists()
    assert (tmp_path / 'output' / 'total.txt').exists()


def test_cli_user_info_renames_in_total(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    info = tmp_path / 'users.json'
    info.write_text(json.dumps({'Alice': 'Alice Kim'}), encoding='utf-8')
    main(['o/alpha', 'o/beta', '-f', 'text', '--user-info', str(info)], collector=StubCollector(DATA))
    total = Path('output/total.txt').read_text(encoding='utf-8')
    assert 'Alice Kim' in total
    assert 'alice ' not in total


def test_cli_invalid_user_info_exits_before_processing(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    info = tmp_path / 'users.csv'
    info.write_text('id,name\n', encoding='utf-8')
    collector = StubCollector(DATA)
    with pytest.raises(SystemExit) as exc:
        main(['o/alpha', '--user-info', str(info)], collector=collector)
    assert exc.value.code == 1
    assert 'Invalid user-info format' in capsys.readouterr().out
    assert not (tmp_path / 'output').exists()


def test_cli_invalid_format_exits(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as exc:
        main(['o/alpha', '-f', 'xml'], collector=StubCollector(DATA))
    assert exc.value.code == 1
    assert 'xml' in capsys.readouterr().out
    assert not (tmp_path / 'output').exists()


def test_cli_rejects_reversed_window(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as exc:
        main(['o/alpha', '--since', '2025-02-01', '--until', '2025-01-01'], collector=StubCollector(DATA))
    assert exc.value.code == 2


class TotalsDispatcher:
    def __init__(self):
        self.totals = None

    def dispatch(self, fmt, scores, repo_label, output_dir):
        return None

    def write_total(self, scores, output_dir):
        self.totals = scores.copy()
        return str(Path(output_dir) / 'total.txt')


def test_cli_preset_changes_weights(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('REPOSCORE_WEIGHTS', raising=False)
    dispatcher = TotalsDispatcher()
    rc = main(['o/alpha', '-f', 'text', '--preset', 'flat'], collector=StubCollector(DATA), dispatcher=dispatcher)
    assert rc == 0
    # flat weights every category 1, so the total is the plain count
    assert dispatcher.totals['alice'].total == 2
    assert dispatcher.totals['bob'].total == 2


def test_cli_unknown_preset_exits(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('REPOSCORE_WEIGHTS', raising=False)
    with pytest.raises(SystemExit) as exc:
        main(['o/alpha', '--preset', 'nope'], collector=StubCollector(DATA))
    assert exc.value.code == 1
    assert 'nope' in capsys.readouterr().out


def test_cli_unwritable_output_still_prints_summary(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    blocker = tmp_path / 'not-a-dir'
    blocker.write_text('file', encoding='utf-8')
    rc = main(['o/alpha', 'x', '-f', 'text', '-o', str(blocker)], collector=StubCollector(DATA))
    assert rc == 0
    out = capsys.readouterr().out
    assert 'Error while writing run-wide totals' in out
    assert 'Summary across repositories' in out
    assert '- x (expected owner/repo)' in out
