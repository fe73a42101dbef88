"""Children services."""

from emotiva.services.children.child_service import ChildService, format_child

__all__ = ["ChildService", "format_child"]
