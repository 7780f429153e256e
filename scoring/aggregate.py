"""
Run-wide score aggregation across repositories.
"""
from typing import Mapping

from normalize.models import UserScore
from normalize.util import CaseInsensitiveDict


def merge_scores(table: CaseInsensitiveDict, repo_scores: Mapping[str, UserScore]) -> CaseInsensitiveDict:
    """Fold one repository's scores into table in place and return it.

    New identities are inserted as-is. Existing ones are replaced by the sum of
    the stored and incoming scores (counts and totals each summed). Entries are
    never removed.
    """
    for identity, score in repo_scores.items():
        if identity in table:
            table[identity] = table[identity] + score
        else:
            table[identity] = score
    return table


class ScoreAggregator:
    """
    Holds the aggregate score table for a single run.
    """
    def __init__(self):
        self.table = CaseInsensitiveDict()

    def merge(self, repo_scores: Mapping[str, UserScore]):
        merge_scores(self.table, repo_scores)

    def __len__(self):
        return len(self.table)

    def __bool__(self):
        return len(self.table) > 0
