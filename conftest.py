"""Pytest hooks for Record Guard. Tests run against an in-memory Supabase fake, never a live project."""

import os


def pytest_configure(config):
    """Warn when live Supabase credentials are present in this terminal session."""
    if os.environ.get("SUPABASE_SERVICE_ROLE_KEY"):
        print(
            "\nNote: SUPABASE_SERVICE_ROLE_KEY is set. Tests inject tests/fake_supabase.py and do not "
            "touch the live project, but unset it if you want to be sure: unset SUPABASE_SERVICE_ROLE_KEY\n",
            end="",
        )
