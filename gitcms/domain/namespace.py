"""
Namespace domain objects for gitcms.

A namespace is a top-level directory of the document tree. A caller's
NamespaceContext lists the namespaces it may see: its personal namespace
first, then one per group.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Tuple

# Claims of an authenticated caller, e.g. {"sub": "...", "groups": [...]}
Identity = Mapping[str, Any]

ANONYMOUS_USER = "anonymous"
UNKNOWN_USER = "unknown-user"


@dataclass(frozen=True)
class NamespaceContext:
    """Per-request view of the namespaces a caller can reach."""
    user_id: str
    user_groups: FrozenSet[str] = field(default_factory=frozenset)
    available_namespaces: Tuple[str, ...] = ()
    default_namespace: str = "shared"

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == ANONYMOUS_USER

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'user_groups': sorted(self.user_groups),
            'available_namespaces': list(self.available_namespaces),
            'default_namespace': self.default_namespace,
        }
