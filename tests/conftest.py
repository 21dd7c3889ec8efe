"""
Pytest configuration for tests under tests/.

Tests import the library as `profile_views` and shared builders as
`tests.fixtures.*`. This conftest puts the repository root on sys.path so both
resolve regardless of invocation cwd, without installing the package.
"""

from __future__ import annotations

import sys
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
