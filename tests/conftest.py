"""Pytest bootstrap ensuring the in-repo powertop_mcp package is imported.

Prepends the repo root so a stale site-packages install of powertop_mcp
cannot shadow the working tree when a single test file is run directly.
"""

import os, sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)
