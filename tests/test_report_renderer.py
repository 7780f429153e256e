import csv
import io
import os

from normalize.models import UserScore
from report import renderer
from report.renderer import ReportDispatcher, render_csv, render_html, render_text


def _scores():
    return {
        'bob': UserScore(0, 1, 0, 0, 0, total=2.0),
        'Alice': UserScore(1, 0, 1, 0, 0, total=4.0),
    }


def test_render_text_ranks_by_total():
    out = render_text(_scores(), 'demo')
    lines = out.splitlines()
    assert lines[0] == '=== demo ==='
    assert 'PR_fb' in lines[1]
    assert lines[3].split()[:2] == ['1', 'Alice']
    assert lines[4].split()[:2] == ['2', 'bob']
    assert lines[3].rstrip().endswith('4.0')


def test_render_csv_header_and_rows():
    rows = list(csv.reader(io.StringIO(render_csv(_scores()))))
    assert rows[0] == ['name', 'PR_fb', 'PR_doc', 'PR_typo', 'IS_fb', 'IS_doc', 'total']
    assert rows[1][0] == 'Alice'
    assert rows[2] == ['bob', '0', '1', '0', '0', '0', '2.0']


def test_render_html_escapes_names():
    html = render_html({'<script>': UserScore(1, 0, 0, 0, 0, total=3.0)}, 'demo')
    assert '<html' in html.lower()
    assert '&lt;script&gt;' in html
    assert '<script>' not in html


def test_render_html_empty_table():
    assert 'No contributions found' in render_html({}, 'empty')


def test_dispatch_writes_every_format(tmp_path):
    dispatcher = ReportDispatcher()
    out_dir = str(tmp_path / 'out')
    written = [dispatcher.dispatch(fmt, _scores(), 'demo', out_dir) for fmt in ('text', 'csv', 'chart', 'html')]
    for path, ext in zip(written, ('txt', 'csv', 'png', 'html')):
        assert path == os.path.join(out_dir, 'demo', f'demo.{ext}')
        assert os.path.getsize(path) > 0
    html = open(written[3], encoding='utf-8').read()
    assert 'demo.png' in html


def test_dispatch_unknown_format_is_not_fatal(tmp_path, capsys):
    dispatcher = ReportDispatcher(renderers={})
    assert dispatcher.dispatch('html', _scores(), 'demo', str(tmp_path)) is None
    assert "No renderer available for format 'html'" in capsys.readouterr().out


def test_write_total(tmp_path):
    path = ReportDispatcher().write_total(_scores(), str(tmp_path))
    assert path == os.path.join(str(tmp_path), 'total.txt')
    content = open(path, encoding='utf-8').read()
    assert content.startswith('=== total ===')
    assert 'Alice' in content and 'bob' in content


def test_ranked_ties_broken_by_name():
    scores = {'zed': UserScore(0, 0, 0, 0, 0, total=1.0), 'amy': UserScore(0, 0, 0, 0, 0, total=1.0)}
    assert [n for n, _ in renderer._ranked(scores)] == ['amy', 'zed']
