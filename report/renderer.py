"""
Report renderer: write per-repository and run-wide score tables as text, CSV, chart or HTML.
HTML is rendered with Jinja2 from report/templates/report.html.j2.
"""

from typing import Callable, Dict, List, Mapping, Optional, Tuple
import csv
import io
import logging
import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt  # noqa: E402
from jinja2 import Environment, FileSystemLoader, select_autoescape  # noqa: E402

from normalize.models import ACTIVITY_FIELDS, UserScore  # noqa: E402

logger = logging.getLogger(__name__)

TOTAL_LABEL = 'total'
CSV_HEADER = ['name'] + list(ACTIVITY_FIELDS) + ['total']
TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')


def _ranked(scores: Mapping[str, UserScore]) -> List[Tuple[str, UserScore]]:
    """Rows sorted by total descending, ties broken by name."""
    return sorted(scores.items(), key=lambda kv: (-kv[1].total, kv[0].lower()))


def _fmt_total(total: float) -> str:
    return f"{total:.1f}"


def render_text(scores: Mapping[str, UserScore], title: str = '') -> str:
    """Render a fixed-width table with one ranked row per contributor."""
    rows = _ranked(scores)
    name_width = max([len('name')] + [len(n) for n, _ in rows])
    header = f"{'rank':>4}  {'name':<{name_width}}" + ''.join(f" {f:>7}" for f in ACTIVITY_FIELDS) + f" {'total':>8}"
    lines = []
    if title:
        lines.append(f"=== {title} ===")
    lines.append(header)
    lines.append('-' * len(header))
    for rank, (name, s) in enumerate(rows, start=1):
        counts = ''.join(f" {c:>7}" for c in s.counts())
        lines.append(f"{rank:>4}  {name:<{name_width}}{counts} {_fmt_total(s.total):>8}")
    return "\n".join(lines) + "\n"


def render_csv(scores: Mapping[str, UserScore]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    for name, s in _ranked(scores):
        writer.writerow([name, *s.counts(), s.total])
    return output.getvalue()


def render_html(scores: Mapping[str, UserScore], title: str, chart_file: Optional[str] = None) -> str:
    env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html', 'xml', 'j2']))
    tmpl = env.get_template('report.html.j2')
    rows = [{'rank': i, 'name': n, 'score': s} for i, (n, s) in enumerate(_ranked(scores), start=1)]
    return tmpl.render(title=title, fields=ACTIVITY_FIELDS, rows=rows, chart_file=chart_file)


def render_chart(scores: Mapping[str, UserScore], title: str, path: str):
    """Save a horizontal bar chart of totals to path."""
    rows = list(reversed(_ranked(scores)))
    names = [n for n, _ in rows]
    totals = [s.total for _, s in rows]
    fig, ax = plt.subplots(figsize=(10, max(2.5, 0.4 * len(rows) + 1)))
    try:
        bars = ax.barh(names, totals, color='steelblue')
        for bar, total in zip(bars, totals):
            ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2, f" {_fmt_total(total)}", va='center')
        ax.set_xlabel('Score')
        ax.set_title(f"Contribution scores: {title}")
        fig.tight_layout()
        fig.savefig(path)
    finally:
        plt.close(fig)


def _write_report_file(path: str, content: str) -> str:
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' is safe for CSV on Windows and harmless for other formats
    with open(path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    return path


class ReportDispatcher:
    """
    Writes a score table to <output_dir>/<label>/<label>.<ext> for each requested format.
    """
    def __init__(self, renderers: Optional[Dict[str, Callable]] = None):
        self.renderers = renderers if renderers is not None else {
            'text': self._write_text,
            'csv': self._write_csv,
            'chart': self._write_chart,
            'html': self._write_html,
        }

    def _base(self, label: str, output_dir: str) -> str:
        return os.path.join(output_dir, label, label)

    def _write_text(self, scores, label, output_dir):
        return _write_report_file(self._base(label, output_dir) + '.txt', render_text(scores, label))

    def _write_csv(self, scores, label, output_dir):
        return _write_report_file(self._base(label, output_dir) + '.csv', render_csv(scores))

    def _write_chart(self, scores, label, output_dir):
        path = self._base(label, output_dir) + '.png'
        os.makedirs(os.path.dirname(path), exist_ok=True)
        render_chart(scores, label, path)
        return path

    def _write_html(self, scores, label, output_dir):
        chart_name = f"{label}.png"
        chart_file = chart_name if os.path.exists(self._base(label, output_dir) + '.png') else None
        return _write_report_file(self._base(label, output_dir) + '.html', render_html(scores, label, chart_file))

    def dispatch(self, fmt: str, scores: Mapping[str, UserScore], repo_label: str, output_dir: str) -> Optional[str]:
        """Render scores in fmt; an unknown format is reported and skipped."""
        handler = self.renderers.get(fmt)
        if handler is None:
            print(f"No renderer available for format '{fmt}'; skipped.")
            return None
        path = handler(scores, repo_label, output_dir)
        logger.debug("Wrote %s report for %s to %s", fmt, repo_label, path)
        return path

    def write_total(self, scores: Mapping[str, UserScore], output_dir: str) -> str:
        path = os.path.join(output_dir, f"{TOTAL_LABEL}.txt")
        return _write_report_file(path, render_text(scores, TOTAL_LABEL))
