import os
from fnmatch import fnmatch

import pytest

from scoring.utils import WEIGHTS_FILENAME, _default_weights_path

tomllib = pytest.importorskip('tomllib')

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def _setuptools_config():
    with open(os.path.join(ROOT, 'pyproject.toml'), 'rb') as fh:
        return tomllib.load(fh)['tool']['setuptools']


def test_default_weights_file_is_shipped(monkeypatch):
    monkeypatch.delenv('REPOSCORE_WEIGHTS', raising=False)
    path = _default_weights_path()
    assert os.path.isfile(path)

    cfg = _setuptools_config()
    package = os.path.basename(os.path.dirname(path))
    assert package in cfg['packages']
    assert any(fnmatch(WEIGHTS_FILENAME, pattern) for pattern in cfg['package-data'][package])


def test_html_template_is_shipped():
    cfg = _setuptools_config()
    assert any(fnmatch('templates/report.html.j2', pattern) for pattern in cfg['package-data']['report'])
