"""
Views for the investigation app.

Provides HTTP endpoints for triggering batch investigations.
"""

import json
import logging
from typing import Any

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.investigation.batch import run_batch
from apps.investigation.dtos import InvestigationRequest
from apps.investigation.tasks import investigate_batch_task

logger = logging.getLogger(__name__)


class JSONResponseMixin:
    """Mixin for JSON responses."""

    def json_response(self, data: Any, status: int = 200) -> JsonResponse:
        return JsonResponse(data, status=status)

    def error_response(self, message: str, status: int = 400) -> JsonResponse:
        return JsonResponse({"error": message}, status=status)


@method_decorator(csrf_exempt, name="dispatch")
class BatchInvestigationView(JSONResponseMixin, View):
    """
    API endpoint for investigating a batch of accounts.

    POST /investigation/batch/
        Queue the batch on a Celery worker.

    POST /investigation/batch/sync/
        Run the batch inline and return the case files.

    Request body:
    {
        "request_id": "...",        // Optional: generated if missing
        "requested_by": "alice",    // Optional
        "accounts": [{...}, ...]    // Pre-classified Stale/Orphaned accounts
    }
    """

    def post(self, request, mode: str = "async"):
        """Handle batch trigger request."""
        try:
            body = json.loads(request.body) if request.body else {}
        except json.JSONDecodeError:
            return self.error_response("Invalid JSON body", status=400)

        try:
            investigation_request = InvestigationRequest.from_dict(body)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            return self.error_response(f"Invalid investigation request: {e}", status=400)

        if not investigation_request.accounts:
            return self.error_response("'accounts' must not be empty", status=400)

        if mode == "sync":
            batch = run_batch(investigation_request)
            return self.json_response(batch.to_dict())

        task_result = investigate_batch_task.delay(investigation_request.to_dict())
        return self.json_response(
            {
                "status": "queued",
                "task_id": task_result.id,
                "request_id": investigation_request.request_id,
                "message": (
                    f"{len(investigation_request.accounts)} accounts queued for investigation"
                ),
            },
            status=202,
        )
