"""
Per-repository raw activity dump.
"""
import os
from typing import Mapping

from normalize.models import ACTIVITY_FIELDS, UserActivity

# the raw dump always lands under this root, whatever output directory was requested
RAW_DUMP_ROOT = 'output'


def raw_dump_path(repo: str, root: str = RAW_DUMP_ROOT) -> str:
    return os.path.join(root, repo, f"{repo}2.txt")


def write_activity_dump(repo: str, activities: Mapping[str, UserActivity], root: str = RAW_DUMP_ROOT) -> str:
    """Write one block of raw counts per contributor and return the file path.

    The file is fully written and closed before this returns.
    """
    path = raw_dump_path(repo, root)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(f"=== {repo} Activities ===\n")
        for user_id, activity in activities.items():
            f.write(f"User ID: {user_id}\n")
            for field in ACTIVITY_FIELDS:
                f.write(f"  {field}: {getattr(activity, field)}\n")
            f.write("\n")
    return path
