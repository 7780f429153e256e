"""
Scoring utility functions.
Provides weight loading and the weighted-sum helper used by scoring.metrics.
"""
from typing import Dict, Any, Optional
import os

import yaml

from normalize.models import ACTIVITY_FIELDS

# filename used for weight YAML configuration
WEIGHTS_FILENAME = 'weights.yaml'
WEIGHTS_ENV = 'REPOSCORE_WEIGHTS'

# per-label weights, non-negative whole numbers; total = sum(count * weight)
DEFAULT_WEIGHTS = {
    'PR_fb': 3,
    'PR_doc': 2,
    'PR_typo': 1,
    'IS_fb': 2,
    'IS_doc': 1,
}


def _default_weights_path() -> str:
    env_path = os.getenv(WEIGHTS_ENV)
    if env_path:
        return env_path
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config', WEIGHTS_FILENAME)


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        doc = yaml.safe_load(f) or {}
    if not isinstance(doc, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return doc


def _coerce_weight(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"weight '{key}' must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"weight '{key}' must be numeric, got {value!r}")
    if not number.is_integer():
        raise ValueError(f"weight '{key}' must be a whole number, got {value!r}")
    w = int(number)
    if w < 0:
        raise ValueError(f"weight '{key}' must be non-negative, got {w}")
    return w


def load_weights(path: Optional[str] = None) -> Dict[str, int]:
    """
    Load label weights from a YAML file if available, otherwise return defaults.
    Keys missing from the file keep their default weight; unknown keys are ignored.
    """
    if not path:
        path = _default_weights_path()
    if not os.path.exists(path):
        return DEFAULT_WEIGHTS.copy()
    data = _read_yaml(path)
    return {k: _coerce_weight(k, data.get(k, DEFAULT_WEIGHTS[k])) for k in ACTIVITY_FIELDS}


def compute_weighted_score(counts: Dict[str, Any], weights: Dict[str, int]) -> int:
    """
    Compute a single aggregate score from individual counts using provided weights.
    Missing counts are treated as zero.
    """
    total = 0
    for k, w in weights.items():
        total += int(counts.get(k, 0) or 0) * int(w)
    return total


def load_preset(preset_name: str, path: Optional[str] = None) -> Dict[str, int]:
    """
    Load and return a merged weights mapping for the given preset name.

    Behavior:
    - Loads the base/top-level weights using the same path resolution as load_weights().
    - If the config file contains a 'presets' section and the named preset exists, the
      preset values are merged over the base weights and the merged dict is returned.
    - If the preset is not found, raises a ValueError.

    Example:
        merged = load_preset('docs_focused')

    """
    if not path:
        path = _default_weights_path()
    if not os.path.exists(path):
        raise ValueError(f"Weights config file not found at: {path}")
    base = load_weights(path)
    doc = _read_yaml(path)

    presets = doc.get('presets')
    if not isinstance(presets, dict) or preset_name not in presets:
        raise ValueError(f"Preset '{preset_name}' not found in {path}")

    preset_map = presets.get(preset_name) or {}
    merged = base.copy()
    for k, v in preset_map.items():
        if k in merged:
            merged[k] = _coerce_weight(k, v)
    return merged


def list_presets(path: Optional[str] = None) -> list:
    """Return a list of available preset names from the weights YAML (or empty list)."""
    if not path:
        path = _default_weights_path()
    if not os.path.exists(path):
        return []
    presets = _read_yaml(path).get('presets')
    return list(presets.keys()) if isinstance(presets, dict) else []
