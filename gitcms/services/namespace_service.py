"""
Namespace resolution and path safety for gitcms.

When namespaces are enabled, every user gets a personal top-level
directory named after their (sanitized) user id, plus one directory per
group they belong to. When disabled, everyone shares the repository root.

validate_path() is the single path-safety gate: the file service calls it
on every caller-supplied filename before any namespace prefix is applied.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, NamedTuple, Optional, TypeVar

from ..domain import ANONYMOUS_USER, UNKNOWN_USER, Identity, NamespaceContext
from ..errors import ValidationError
from .identity import IdentityProvider

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Dots are replaced too, so a sanitized claim can never be '.' or '..'
UNSAFE_CHARS = re.compile(r'[^a-z0-9_-]')

FALLBACK_USER_CLAIM = 'sub'


def sanitize(value: Any) -> str:
    """Lowercase and replace every character outside [a-z0-9_-] with '-'."""
    return UNSAFE_CHARS.sub('-', str(value).lower())


def validate_path(path: str) -> str:
    """
    Reject traversal and absolute paths.

    Raises:
        ValidationError: If ``path`` contains '..' or '/./', or starts with '/'
    """
    if '..' in path or '/./' in path or path.startswith('/'):
        raise ValidationError(f"Invalid file path: {path}", {'path': path})
    return path


def validate_namespace(namespace: str) -> str:
    """A namespace is one safe, non-empty path segment."""
    if not namespace or '/' in namespace:
        raise ValidationError(f"Invalid namespace: {namespace!r}", {'namespace': namespace})
    return validate_path(namespace)


@dataclass(frozen=True)
class NamespaceSettings:
    enabled: bool = False
    user_claim: str = 'sub'
    groups_claim: str = 'groups'
    default_namespace: str = 'shared'


class NamespacedPath(NamedTuple):
    namespace: str
    relative_path: str


class NamespaceResolver:
    """
    Maps identities to namespace contexts and namespaces to paths.

    Example:
        resolver = NamespaceResolver(NamespaceSettings(enabled=True))
        ctx = resolver.resolve({'sub': 'Alice', 'groups': ['Team X']})
        ctx.available_namespaces   # ('alice', 'team-x')
        resolver.to_path('notes.md', 'team-x')   # 'team-x/notes.md'
    """

    def __init__(self, settings: Optional[NamespaceSettings] = None):
        self.settings = settings or NamespaceSettings()

    def is_enabled(self) -> bool:
        return self.settings.enabled

    @property
    def default_namespace(self) -> str:
        return self.settings.default_namespace

    def anonymous_context(self) -> NamespaceContext:
        default = self.settings.default_namespace
        return NamespaceContext(
            user_id=ANONYMOUS_USER,
            user_groups=frozenset(),
            available_namespaces=(default,),
            default_namespace=default,
        )

    def resolve(self, identity: Optional[Identity] = None) -> NamespaceContext:
        """
        Build the namespace context for ``identity``.

        Disabled namespaces or a missing identity give the anonymous
        context, whose only namespace is the configured default.
        """
        if not self.settings.enabled or identity is None:
            return self.anonymous_context()

        raw_user = identity.get(self.settings.user_claim) or identity.get(FALLBACK_USER_CLAIM)
        user_id = sanitize(raw_user) if raw_user else ''
        if not user_id:
            logger.warning(f"Identity has no '{self.settings.user_claim}' claim; using {UNKNOWN_USER}")
            user_id = UNKNOWN_USER

        groups: List[str] = []
        for group in self._claim_list(identity.get(self.settings.groups_claim)):
            name = sanitize(group)
            if name and name != user_id and name not in groups:
                groups.append(name)

        return NamespaceContext(
            user_id=user_id,
            user_groups=frozenset(groups),
            available_namespaces=(user_id, *groups),
            default_namespace=user_id,
        )

    def resolve_current(self, provider: IdentityProvider) -> NamespaceContext:
        return self.resolve(provider.current_identity())

    @staticmethod
    def _claim_list(value: Any) -> List[Any]:
        if value is None:
            return []
        if isinstance(value, (list, tuple, set, frozenset)):
            return [v for v in value if v is not None]
        return [value]

    def is_accessible(self, namespace: str, context: NamespaceContext) -> bool:
        if not self.settings.enabled:
            return True
        return namespace in context.available_namespaces

    def to_path(self, relative_path: str, namespace: Optional[str]) -> str:
        if not self.settings.enabled or not namespace:
            return relative_path
        if relative_path.startswith(f"{namespace}/"):
            return relative_path
        return f"{namespace}/{relative_path}"

    def from_path(self, path: str) -> NamespacedPath:
        if '/' not in path:
            return NamespacedPath(self.settings.default_namespace, path)
        namespace, relative_path = path.split('/', 1)
        return NamespacedPath(namespace, relative_path)

    def filter_accessible(
        self,
        items: Iterable[T],
        context: NamespaceContext,
        path_of: Callable[[T], str] = lambda item: item.path,
    ) -> List[T]:
        """Keep the items whose path lies in a namespace ``context`` may reach."""
        if not self.settings.enabled:
            return list(items)
        return [
            item for item in items
            if self.is_accessible(self.from_path(path_of(item)).namespace, context)
        ]
