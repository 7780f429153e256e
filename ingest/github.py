"""
GitHub ingestion client.
Collects pull requests and issues of one repository and tallies them per contributor by label.
"""
import logging
from datetime import date
from typing import List, Dict, Any, Optional

from normalize.models import UserActivity
from storage.retry import perform_request_with_retries

logger = logging.getLogger(__name__)

# responses are always fetched live; there is no caching layer behind this switch
CACHE_ENABLED = False

LABEL_BUG = 'bug'
LABEL_DOC = 'documentation'
LABEL_TYPO = 'typo'

# label -> activity field, for pull requests and for issues
PR_LABEL_FIELDS = {LABEL_BUG: 'PR_fb', LABEL_DOC: 'PR_doc', LABEL_TYPO: 'PR_typo'}
ISSUE_LABEL_FIELDS = {LABEL_BUG: 'IS_fb', LABEL_DOC: 'IS_doc'}


class IngestionError(Exception):
    """Raised when activity for a repository cannot be collected."""


def _as_date(value) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _label_names(item: Dict[str, Any]) -> List[str]:
    names = []
    for label in item.get('labels') or []:
        name = label.get('name') if isinstance(label, dict) else label
        if name:
            names.append(str(name).lower())
    return names


def _is_pull_request(item: Dict[str, Any]) -> bool:
    return bool(item.get('pull_request'))


def _counts_towards_score(item: Dict[str, Any]) -> bool:
    """Merged pull requests and issues not closed as 'not planned' count."""
    if _is_pull_request(item):
        return bool((item.get('pull_request') or {}).get('merged_at'))
    return item.get('state_reason') != 'not_planned'


def _created_on(item: Dict[str, Any]) -> Optional[date]:
    created = item.get('created_at') or ''
    if len(created) < 10:
        return None
    return date.fromisoformat(created[:10])


def _in_window(item: Dict[str, Any], since: Optional[date], until: Optional[date]) -> bool:
    created = _created_on(item)
    if created is None:
        return since is None and until is None
    if since and created < since:
        return False
    if until and created > until:
        return False
    return True


def tally_items(items: List[Dict[str, Any]], since=None, until=None) -> Dict[str, UserActivity]:
    """Build per-login activity counts from raw issue/PR payloads.

    An item carrying several tracked labels counts once for each of them.
    """
    since_d, until_d = _as_date(since), _as_date(until)
    tallies: Dict[str, Dict[str, int]] = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        login = (item.get('user') or {}).get('login')
        if not login or not _counts_towards_score(item) or not _in_window(item, since_d, until_d):
            continue
        field_map = PR_LABEL_FIELDS if _is_pull_request(item) else ISSUE_LABEL_FIELDS
        fields = [field_map[name] for name in _label_names(item) if name in field_map]
        if not fields:
            continue
        user_counts = tallies.setdefault(login, {})
        for field in fields:
            user_counts[field] = user_counts.get(field, 0) + 1
    return {login: UserActivity(**counts) for login, counts in tallies.items()}


class GitHubClient:
    """Fetches issues and pull requests for a repository from the GitHub REST API."""

    def __init__(self, token: Optional[str] = None, base_url: str = None, per_page: int = 100):
        self.token = token
        self.base_url = (base_url or "https://api.github.com").rstrip('/')
        self.per_page = per_page
        self.headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"

    def _fetch_issues(self, owner: str, repo: str, since: Optional[date] = None) -> List[Dict[str, Any]]:
        """Page through the issues endpoint, which also lists pull requests."""
        url = f"{self.base_url}/repos/{owner}/{repo}/issues"
        page = 1
        items: List[Dict[str, Any]] = []
        while True:
            params = {"state": "all", "page": page, "per_page": self.per_page}
            if since:
                # filters on updated_at, which is never earlier than created_at
                params["since"] = f"{since.isoformat()}T00:00:00Z"
            res = perform_request_with_retries(url, headers=self.headers, params=params)
            status = res.get('status', 0)
            data = res.get('response')
            if status != 200:
                message = data.get('message') if isinstance(data, dict) else data
                raise IngestionError(f"GitHub returned status {status} for {owner}/{repo}: {message}")
            if not isinstance(data, list):
                raise IngestionError(f"Unexpected payload for {owner}/{repo} issues page {page}")
            items.extend(data)
            logger.debug("Fetched page %d of %s/%s (%d items)", page, owner, repo, len(data))
            if len(data) < self.per_page:
                break
            page += 1
        return items

    def collect(self, owner: str, repo: str, since=None, until=None) -> Dict[str, UserActivity]:
        """Return per-login activity counts for owner/repo within [since, until] (inclusive dates)."""
        since_d, until_d = _as_date(since), _as_date(until)
        items = self._fetch_issues(owner, repo, since_d)
        return tally_items(items, since_d, until_d)
