"""Observability utilities for thinking-frameworks.

- @observe decorator for span creation around strategy runs and LLM calls
- Token usage aggregation onto the root (strategy) span
"""

from .observe import observe

__all__ = ["observe"]
