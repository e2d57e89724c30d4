"""
Core domain package.

This package contains the grouping and aggregation logic, which should be
independent of any UI layer (CLI, console output) and of the HTTP client.
The only I/O seam is the page/field fetch callables passed in by callers.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `darkroom.core.pairing`).
"""

from __future__ import annotations

__all__: list[str] = []
