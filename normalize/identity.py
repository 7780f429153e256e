"""
Identity resolution: optional id -> display name table loaded from JSON or CSV.
"""
import json
import logging
import os
from typing import Dict, Optional

from normalize.util import CaseInsensitiveDict

logger = logging.getLogger(__name__)


class IdentityMapError(Exception):
    """Raised when a user-info file cannot be turned into a non-empty id -> name map."""


def _load_json_map(path: str) -> CaseInsensitiveDict:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise IdentityMapError(f"{path}: expected a JSON object of id -> name pairs")
    mapping = CaseInsensitiveDict()
    for k, v in data.items():
        if not isinstance(v, str):
            raise IdentityMapError(f"{path}: value for '{k}' is not a string")
        mapping[k] = v
    return mapping


def _load_csv_map(path: str) -> CaseInsensitiveDict:
    with open(path, 'r', encoding='utf-8-sig') as f:
        lines = f.read().splitlines()
    mapping = CaseInsensitiveDict()
    # first line is the header (id,name)
    for lineno, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        parts = line.split(',')
        if len(parts) != 2:
            raise IdentityMapError(f"{path}:{lineno}: expected 'id,name', got {line!r}")
        uid, name = parts[0].strip(), parts[1].strip()
        mapping[uid] = name
    return mapping


_LOADERS = {
    '.json': _load_json_map,
    '.csv': _load_csv_map,
}


def load_identity_map(path: str) -> CaseInsensitiveDict:
    """Load an id -> display name table; the file extension selects the parser.

    Raises IdentityMapError for an unknown extension, an unreadable or malformed
    file, or a table that ends up empty.
    """
    ext = os.path.splitext(path)[1].lower()
    loader = _LOADERS.get(ext)
    if loader is None:
        raise IdentityMapError(f"unsupported user-info extension '{ext or path}' (use .json or .csv)")
    try:
        mapping = loader(path)
    except IdentityMapError:
        raise
    except (OSError, ValueError) as exc:
        raise IdentityMapError(f"failed to read {path}: {exc}") from exc
    if len(mapping) == 0:
        raise IdentityMapError(f"{path} contains no id -> name entries")
    logger.debug("Loaded %d identities from %s", len(mapping), path)
    return mapping


class IdentityResolver:
    """
    Maps raw contributor ids to display names, case-insensitively.
    Without a table every id resolves to itself.
    """
    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        self.mapping = CaseInsensitiveDict(mapping) if mapping else None

    @classmethod
    def from_path(cls, path: Optional[str]) -> 'IdentityResolver':
        if not path:
            return cls()
        return cls(load_identity_map(path))

    def resolve(self, user_id: str) -> str:
        if self.mapping is None:
            return user_id
        return self.mapping.get(user_id, user_id)

    def resolve_scores(self, scores: Dict[str, object]) -> CaseInsensitiveDict:
        """Re-key a per-user score table by resolved identity.

        Ids that resolve to the same identity are summed with '+'.
        """
        resolved = CaseInsensitiveDict()
        for uid, score in scores.items():
            name = self.resolve(uid)
            if name in resolved:
                resolved[name] = resolved[name] + score
            else:
                resolved[name] = score
        return resolved
