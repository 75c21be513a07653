"""Cron/operator entry point for reclaiming artifact storage."""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass

from src.reverser.cleanup.cleanup_service import CleanupService
from src.reverser.config import load_config
from src.reverser.retention.retention_sweeper import RetentionSweeper
from src.reverser.storage.artifact_models import ArtifactKind
from src.reverser.storage.artifact_store import ArtifactStore


@dataclass(slots=True)
class CleanupSummary:
    removed: int
    failed: int
    full: bool
    dry_run: bool


def perform_cleanup(*, full: bool, dry_run: bool, reference_time: float | None = None) -> CleanupSummary:
    """Run the age sweep (or the full sweep) once and return counters."""
    config = load_config()
    store = ArtifactStore(config.artifact_paths)
    now = time.time() if reference_time is None else reference_time

    if dry_run:
        candidates = [
            artifact
            for kind in ArtifactKind
            for artifact in store.list_artifacts(kind, include_partial=True)
            if full or artifact.age_seconds(now) > config.age_threshold_seconds
        ]
        return CleanupSummary(removed=len(candidates), failed=0, full=full, dry_run=True)

    if full:
        report = CleanupService(store=store).cleanup_all(force=True)
    else:
        sweeper = RetentionSweeper(
            store=store,
            age_threshold_seconds=config.age_threshold_seconds,
            age_interval_seconds=config.age_sweep_interval_seconds,
            full_interval_seconds=config.full_sweep_interval_seconds,
        )
        report = sweeper.sweep_expired(now)
    return CleanupSummary(removed=report.deleted_count, failed=report.failed_count, full=full, dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete stored upload and reversed video artifacts.")
    parser.add_argument("--all", dest="full", action="store_true", help="Delete every artifact regardless of age.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_cleanup(full=args.full, dry_run=args.dry_run)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    mode = "all" if summary.full else "expired"
    if summary.dry_run:
        print(f"cleanup dry-run, mode={mode}, candidates={summary.removed}", file=sys.stdout)
    else:
        print(f"cleanup done, mode={mode}, removed={summary.removed}, failed={summary.failed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
