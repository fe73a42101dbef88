"""
Request-scoped application context.

Carries the resolved identity and the guardian's current child selection
explicitly through pipelines instead of keeping them in module state.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List


ROLE_GUARDIAN = "guardian"
ROLE_SCHOOL = "school"
ROLE_PSYCHOLOGIST = "psychologist"

ROLES = [ROLE_GUARDIAN, ROLE_SCHOOL, ROLE_PSYCHOLOGIST]


@dataclass
class AppContext:
    """Identity and selection state for one request."""

    user_id: str
    email: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    selected_child_id: Optional[str] = None
    children: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def role(self) -> Optional[str]:
        if not self.profile:
            return None
        return self.profile.get("role")

    def select_child(self, children: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """
        Resolve the selected child against the owned children.

        Keeps the requested child when it is owned, otherwise falls back to
        the first child in creation order.
        """
        self.children = children
        if not children:
            self.selected_child_id = None
            return None

        for child in children:
            if child["id"] == self.selected_child_id:
                return child

        self.selected_child_id = children[0]["id"]
        return children[0]
