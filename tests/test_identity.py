import json

import pytest

from normalize.identity import IdentityMapError, IdentityResolver, load_identity_map
from normalize.models import UserScore


def _write(path, text):
    path.write_text(text, encoding='utf-8')
    return str(path)


def test_csv_map_is_loaded_and_case_insensitive(tmp_path):
    p = _write(tmp_path / 'users.csv', "id,name\nid1,Name One\n")
    mapping = load_identity_map(p)
    assert dict(mapping) == {'id1': 'Name One'}
    resolver = IdentityResolver(mapping)
    assert resolver.resolve('ID1') == 'Name One'
    assert resolver.resolve('someone') == 'someone'


def test_csv_fields_are_trimmed(tmp_path):
    p = _write(tmp_path / 'users.csv', "Id,Name\n  alice ,  Alice Kim  \n\n")
    assert load_identity_map(p)['alice'] == 'Alice Kim'


@pytest.mark.parametrize('body', [
    "id,name\nonly-one-field\n",
    "id,name\na,b,c\n",
    "id,name\n",
    "",
])
def test_csv_malformed_or_empty_is_fatal(tmp_path, body):
    p = _write(tmp_path / 'users.csv', body)
    with pytest.raises(IdentityMapError):
        load_identity_map(p)


def test_json_map(tmp_path):
    p = _write(tmp_path / 'users.JSON', json.dumps({'octocat': 'The Octocat'}))
    resolver = IdentityResolver.from_path(p)
    assert resolver.resolve('OctoCat') == 'The Octocat'


@pytest.mark.parametrize('body', ['{}', '[]', '{"a": 1}', '{not json'])
def test_json_invalid_is_fatal(tmp_path, body):
    p = _write(tmp_path / 'users.json', body)
    with pytest.raises(IdentityMapError):
        load_identity_map(p)


def test_unknown_extension_and_missing_file(tmp_path):
    p = _write(tmp_path / 'users.txt', "id,name\na,b\n")
    with pytest.raises(IdentityMapError):
        load_identity_map(p)
    with pytest.raises(IdentityMapError):
        load_identity_map(str(tmp_path / 'missing.csv'))


def test_no_path_means_identity():
    resolver = IdentityResolver.from_path(None)
    assert resolver.resolve('Whoever') == 'Whoever'


def test_resolve_scores_merges_ids_with_same_name():
    resolver = IdentityResolver({'kim1': 'Kim', 'KIM2': 'kim'})
    scores = {
        'kim1': UserScore(1, 0, 0, 0, 0, total=3),
        'kim2': UserScore(0, 1, 0, 0, 0, total=2),
        'lee': UserScore(0, 0, 1, 0, 0, total=1),
    }
    resolved = resolver.resolve_scores(scores)
    assert list(resolved) == ['Kim', 'lee']
    assert resolved['KIM'] == UserScore(1, 1, 0, 0, 0, total=5)
