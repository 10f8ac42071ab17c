"""
Management command to investigate a batch of pre-classified NHI accounts.

Usage:
    python manage.py investigate_accounts accounts.json
    python manage.py investigate_accounts accounts.json --requested-by alice
    python manage.py investigate_accounts accounts.json --max-concurrency 2 --json

The input file holds either an InvestigationRequest object
({"accounts": [...], ...}) or a bare list of accounts.
"""

import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from apps.investigation.batch import run_batch
from apps.investigation.dtos import BatchResult, InvestigationRequest


class Command(BaseCommand):
    help = "Investigate Stale/Orphaned NHI accounts and print the case files"

    def add_arguments(self, parser):
        parser.add_argument(
            "file",
            type=str,
            help="Path to a JSON file with the accounts to investigate.",
        )
        parser.add_argument(
            "--requested-by",
            type=str,
            help="Identity of the engineer requesting the investigation.",
        )
        parser.add_argument(
            "--request-id",
            type=str,
            help="Use this request ID instead of the file's (or a generated one).",
        )
        parser.add_argument(
            "--max-concurrency",
            type=int,
            help="Override INVESTIGATION_MAX_CONCURRENCY for this run.",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            dest="json_output",
            help="Output the full batch result as JSON.",
        )

    def handle(self, *args, **options):
        path = Path(options["file"])
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise CommandError(f"File not found: {path}")
        except json.JSONDecodeError as e:
            raise CommandError(f"Invalid JSON in {path}: {e}")

        if isinstance(data, dict):
            if options.get("requested_by"):
                data["requested_by"] = options["requested_by"]
            if options.get("request_id"):
                data["request_id"] = options["request_id"]
        elif options.get("requested_by") or options.get("request_id"):
            data = {
                "accounts": data,
                "requested_by": options.get("requested_by"),
                "request_id": options.get("request_id"),
            }

        try:
            request = InvestigationRequest.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CommandError(f"Invalid investigation request: {e}")

        max_concurrency = options.get("max_concurrency")
        if max_concurrency is not None and max_concurrency < 1:
            raise CommandError("--max-concurrency must be at least 1")

        batch = run_batch(request, max_concurrency=max_concurrency)

        if options["json_output"]:
            self.stdout.write(json.dumps(batch.to_dict(), indent=2))
        else:
            self._output_text(batch)

    def _output_text(self, batch: BatchResult):
        """Output batch summary as formatted text."""
        self.stdout.write("")
        self.stdout.write(self.style.MIGRATE_HEADING(f"Investigation {batch.request_id}"))

        for result in batch.results:
            if result.was_reclassified:
                style = self.style.SUCCESS
            else:
                style = self.style.WARNING
            self.stdout.write(
                style(f"[{result.final_classification.value.upper()}] {result.account_id}")
            )
            self.stdout.write(
                f"  Confidence: {result.activity_verification.confidence.value} | "
                f"App: {result.application_context.status.value} | "
                f"B:{result.routing.send_to_agent_b} C:{result.routing.send_to_agent_c}"
            )
            if result.reclassification_reason:
                self.stdout.write(f"  {result.reclassification_reason}")
            self.stdout.write(f"  Goal: {result.routing.outreach_goal}")

        for failure in batch.failures:
            label = "CANCELLED" if failure.cancelled else "FAILED"
            self.stdout.write(self.style.ERROR(f"[{label}] {failure.account_id}"))
            self.stdout.write(f"  {failure.error_type}: {failure.message}")

        self.stdout.write("")
        self.stdout.write(
            f"Summary: {batch.reclassified_count} reclassified to Active, "
            f"{batch.stale_count} stale, {batch.orphaned_count} orphaned, "
            f"{len(batch.failures)} failed ({batch.duration_ms:.0f} ms)"
        )
        self.stdout.write("")
