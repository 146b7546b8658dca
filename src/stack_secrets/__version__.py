"""stack-secrets version information."""
from __future__ import annotations


__version__ = "1.0.0"
__version_info__ = (1, 0, 0)
