"""
Activity verification app.

Answers "has this account actually done anything recently?" for the
investigation pipeline. Verifiers are pluggable drivers; the engine only
depends on BaseActivityVerifier.
"""

default_app_config = "apps.activity.apps.ActivityConfig"
