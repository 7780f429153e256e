"""
Data models for repository targets, per-user activity counts and scores.
"""

from typing import Dict, Optional

# the five per-contributor tallies, in report order
ACTIVITY_FIELDS = ('PR_fb', 'PR_doc', 'PR_typo', 'IS_fb', 'IS_doc')


class RepoTarget:
    """
    A repository addressed as owner/repo.
    """
    def __init__(self, owner: str, repo: str):
        self.owner = owner
        self.repo = repo

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __eq__(self, other):
        if not isinstance(other, RepoTarget):
            return NotImplemented
        return (self.owner, self.repo) == (other.owner, other.repo)

    def __hash__(self):
        return hash((self.owner, self.repo))

    def __repr__(self):
        return f"RepoTarget({self.owner!r}, {self.repo!r})"


class UserActivity:
    """
    Raw label-classified counts for one contributor in one repository.
    Instances are immutable once built.
    """
    __slots__ = ACTIVITY_FIELDS

    def __init__(self, PR_fb: int = 0, PR_doc: int = 0, PR_typo: int = 0, IS_fb: int = 0, IS_doc: int = 0):
        values = (PR_fb, PR_doc, PR_typo, IS_fb, IS_doc)
        for name, value in zip(ACTIVITY_FIELDS, values):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an int, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)

    def __setattr__(self, name, value):
        raise AttributeError(f"UserActivity is immutable; cannot set {name}")

    def counts(self) -> tuple:
        return tuple(getattr(self, f) for f in ACTIVITY_FIELDS)

    def as_dict(self) -> Dict[str, int]:
        return dict(zip(ACTIVITY_FIELDS, self.counts()))

    def __eq__(self, other):
        if not isinstance(other, UserActivity):
            return NotImplemented
        return self.counts() == other.counts()

    def __hash__(self):
        return hash(self.counts())

    def __repr__(self):
        parts = ', '.join(f"{k}={v}" for k, v in self.as_dict().items())
        return f"UserActivity({parts})"


class UserScore:
    """
    Activity counts plus the derived total for one contributor.

    Adding two scores sums the five counts and the totals independently; the
    total is never recomputed from the summed counts.
    """
    def __init__(self, PR_fb: int, PR_doc: int, PR_typo: int, IS_fb: int, IS_doc: int, total: float):
        self.PR_fb = PR_fb
        self.PR_doc = PR_doc
        self.PR_typo = PR_typo
        self.IS_fb = IS_fb
        self.IS_doc = IS_doc
        self.total = total

    def counts(self) -> tuple:
        return tuple(getattr(self, f) for f in ACTIVITY_FIELDS)

    def as_dict(self) -> Dict[str, float]:
        d = dict(zip(ACTIVITY_FIELDS, self.counts()))
        d['total'] = self.total
        return d

    def __add__(self, other):
        if not isinstance(other, UserScore):
            return NotImplemented
        summed = [a + b for a, b in zip(self.counts(), other.counts())]
        return UserScore(*summed, total=self.total + other.total)

    def __eq__(self, other):
        if not isinstance(other, UserScore):
            return NotImplemented
        return self.counts() == other.counts() and self.total == other.total

    def __repr__(self):
        parts = ', '.join(f"{k}={v}" for k, v in self.as_dict().items())
        return f"UserScore({parts})"


class LabelCounts:
    """
    Per-repository label totals across contributors.
    """
    def __init__(self, bug: int = 0, documentation: int = 0, typo: int = 0):
        self.bug = bug
        self.documentation = documentation
        self.typo = typo

    def add(self, activity: UserActivity):
        self.bug += activity.PR_fb + activity.IS_fb
        self.documentation += activity.PR_doc + activity.IS_doc
        self.typo += activity.PR_typo

    def as_dict(self) -> Dict[str, int]:
        return {'bug': self.bug, 'documentation': self.documentation, 'typo': self.typo}

    def __eq__(self, other):
        if not isinstance(other, LabelCounts):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        return f"LabelCounts(bug={self.bug}, documentation={self.documentation}, typo={self.typo})"


def parse_slug(slug: Optional[str]) -> Optional[RepoTarget]:
    """Return a RepoTarget for 'owner/repo', or None for any other shape."""
    if not slug:
        return None
    parts = slug.split('/')
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return RepoTarget(parts[0], parts[1])
