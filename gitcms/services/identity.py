"""
Identity providers for gitcms.

Authentication is a capability the core depends on rather than a hidden
stub: the caller's identity comes from an IdentityProvider, which may
legitimately return None (anonymous). Token validation belongs to the
web layer that implements this protocol.
"""

from typing import Any, Iterable, Mapping, Optional, Protocol

from ..domain import Identity


class IdentityProvider(Protocol):
    def current_identity(self) -> Optional[Identity]:
        """Claims of the current caller, or None when anonymous."""
        ...


class AnonymousIdentityProvider:
    """Always anonymous."""

    def current_identity(self) -> Optional[Identity]:
        return None


class StaticIdentityProvider:
    """
    Fixed identity.

    Example:
        provider = StaticIdentityProvider({'sub': 'alice', 'groups': ['team-x']})
    """

    def __init__(self, claims: Mapping[str, Any]):
        self.claims = dict(claims)

    @classmethod
    def for_user(
        cls,
        user: str,
        groups: Iterable[str] = (),
        user_claim: str = 'sub',
        groups_claim: str = 'groups',
    ) -> 'StaticIdentityProvider':
        return cls({user_claim: user, groups_claim: list(groups)})

    def current_identity(self) -> Optional[Identity]:
        return self.claims
