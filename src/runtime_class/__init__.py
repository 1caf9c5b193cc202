"""Runtime class extraction and artifact synchronization."""

from .expand import ExpandedResult, expand, generate_runtime_class

__all__ = ["ExpandedResult", "expand", "generate_runtime_class"]
