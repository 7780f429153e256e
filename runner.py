"""
Batch runner: processes repositories one at a time and folds their scores into a run-wide total.

Each repository ends in exactly one outcome (success, parse failure, ingestion
failure, dump failure or report failure). Failures are isolated to their own
repository; scores merged from earlier repositories are never rolled back.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from normalize.identity import IdentityResolver
from normalize.models import LabelCounts, RepoTarget, UserActivity, parse_slug
from normalize.util import CaseInsensitiveDict, missing_identities
from scoring.aggregate import ScoreAggregator
from scoring.metrics import compute_label_counts, derive_scores
from scoring.utils import load_weights
from storage.dump import RAW_DUMP_ROOT, write_activity_dump

logger = logging.getLogger(__name__)


class RepoOutcome:
    """Base class for the result of processing one slug."""
    ok = False

    def __init__(self, slug: str):
        self.slug = slug


class RepoSuccess(RepoOutcome):
    ok = True

    def __init__(self, slug: str, scores: CaseInsensitiveDict, label_counts: LabelCounts, reports: List[str]):
        super().__init__(slug)
        self.scores = scores
        self.label_counts = label_counts
        self.reports = reports


class ParseFailure(RepoOutcome):
    def describe(self) -> str:
        return "expected owner/repo"


class IngestionFailure(RepoOutcome):
    def __init__(self, slug: str, error: Exception):
        super().__init__(slug)
        self.error = error

    def describe(self) -> str:
        return f"could not collect activity: {self.error}"


class DumpFailure(RepoOutcome):
    def __init__(self, slug: str, error: Exception):
        super().__init__(slug)
        self.error = error

    def describe(self) -> str:
        return f"could not write activity dump: {self.error}"


class ReportFailure(RepoOutcome):
    """Scoring or rendering failed; any scores merged before the failure stay merged."""
    def __init__(self, slug: str, error: Exception, merged: bool):
        super().__init__(slug)
        self.error = error
        self.merged = merged


class BatchResult:
    def __init__(self):
        self.aggregate = ScoreAggregator()
        self.summaries: List[Tuple[str, LabelCounts]] = []
        self.failures: List[RepoOutcome] = []
        self.outcomes: List[RepoOutcome] = []
        self.total_path: Optional[str] = None
        self.total_error: Optional[Exception] = None

    @property
    def failed_repos(self) -> List[str]:
        return [outcome.slug for outcome in self.failures]

    def record(self, outcome: RepoOutcome):
        self.outcomes.append(outcome)
        # repositories that contributed nothing to the run-wide total
        if isinstance(outcome, (ParseFailure, IngestionFailure, DumpFailure)):
            self.failures.append(outcome)


def filter_activities(activities: Mapping[str, UserActivity], include_users: Optional[Iterable[str]]) -> Dict[str, UserActivity]:
    """Keep only contributors named in include_users (case-insensitive); no filter keeps all."""
    if not include_users:
        return dict(activities)
    wanted = CaseInsensitiveDict((u, True) for u in include_users)
    return {uid: act for uid, act in activities.items() if uid in wanted}


class BatchRunner:
    """
    Drives collection, dumping, scoring, merging and reporting for a list of slugs.
    """
    def __init__(
        self,
        collector,
        dispatcher,
        formats: Sequence[str],
        output_dir: str = 'output',
        since=None,
        until=None,
        include_users: Optional[Sequence[str]] = None,
        resolver: Optional[IdentityResolver] = None,
        weights: Optional[Dict[str, int]] = None,
        dump_root: str = RAW_DUMP_ROOT,
    ):
        self.collector = collector
        self.dispatcher = dispatcher
        self.formats = list(formats)
        self.output_dir = output_dir
        self.since = since
        self.until = until
        self.include_users = list(include_users) if include_users else None
        self.resolver = resolver or IdentityResolver()
        self.weights = weights if weights is not None else load_weights()
        self.dump_root = dump_root

    def _warn_missing_users(self, target: RepoTarget, activities: Mapping[str, UserActivity]):
        if not self.include_users:
            return
        missing = missing_identities(self.include_users, activities.keys())
        if missing:
            print(f"Warning: these users were not found in {target.slug}: {', '.join(missing)}")

    def _dump(self, target: RepoTarget, activities: Dict[str, UserActivity], result: BatchResult) -> LabelCounts:
        write_activity_dump(target.repo, activities, self.dump_root)
        label_counts = compute_label_counts(activities.values())
        result.summaries.append((target.slug, label_counts))
        self._warn_missing_users(target, activities)
        return label_counts

    def process(self, slug: str, result: BatchResult) -> RepoOutcome:
        """Process one slug and return its outcome; never raises for per-repository failures."""
        target = parse_slug(slug)
        if target is None:
            print(f"Warning: repository argument '{slug}' must be in 'owner/repo' form (e.g. octocat/hello-world)")
            return ParseFailure(slug)

        print(f"\nProcessing: {target.slug}")
        try:
            raw = self.collector.collect(target.owner, target.repo, since=self.since, until=self.until)
        except Exception as exc:
            print(f"! Failed to collect {target.slug}: {exc}")
            logger.debug("Ingestion failure for %s", target.slug, exc_info=True)
            return IngestionFailure(slug, exc)

        activities = filter_activities(raw, self.include_users)

        try:
            label_counts = self._dump(target, activities, result)
        except Exception as exc:
            print(f"! Error while writing activity dump for {target.slug}: {exc}")
            logger.debug("Dump failure for %s", target.slug, exc_info=True)
            return DumpFailure(slug, exc)

        merged = False
        try:
            scores = self.resolver.resolve_scores(derive_scores(activities, self.weights))
            result.aggregate.merge(scores)
            merged = True
            reports = []
            for fmt in self.formats:
                path = self.dispatcher.dispatch(fmt, scores, target.repo, self.output_dir)
                if path:
                    reports.append(path)
        except Exception as exc:
            print(f"! Error while reporting {target.slug}: {exc}")
            logger.debug("Report failure for %s", target.slug, exc_info=True)
            return ReportFailure(slug, exc, merged)

        return RepoSuccess(slug, scores, label_counts, reports)

    def run(self, slugs: Iterable[str]) -> BatchResult:
        result = BatchResult()
        for slug in slugs:
            outcome = self.process(slug, result)
            result.record(outcome)
        if result.aggregate:
            try:
                result.total_path = self.dispatcher.write_total(result.aggregate.table, self.output_dir)
            except Exception as exc:
                print(f"! Error while writing run-wide totals to {self.output_dir}: {exc}")
                logger.debug("Total report failure", exc_info=True)
                result.total_error = exc
            else:
                logger.debug("Wrote run-wide totals to %s", result.total_path)
        return result


def run_batch(slugs: Iterable[str], collector, dispatcher, formats: Sequence[str], **kwargs) -> BatchResult:
    """Convenience wrapper: build a BatchRunner and run it over slugs."""
    return BatchRunner(collector, dispatcher, formats, **kwargs).run(slugs)
