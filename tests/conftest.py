"""Pytest configuration and shared fixtures."""

import os

from hypothesis import settings

# Tests construct their own configs; ambient overrides must not leak in.
for _key in [k for k in os.environ if k.startswith("TMT_")]:
    del os.environ[_key]

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
