"""
NHI account investigation app.

Verifies upstream Stale/Orphaned classifications against real activity,
resolves application context, and builds the case files handed to the
risk (Agent B) and outreach (Agent C) consumers:

    verify activity → override to Active? → resolve app context → route

Key concepts:
- One immutable case file per account per run
- Confidence is a label on the case file, never a gate
- Batches run under a concurrency cap and report per-account failures
"""

default_app_config = "apps.investigation.apps.InvestigationConfig"
