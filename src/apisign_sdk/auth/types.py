"""
Authentication kinds understood by the apisign client
"""

from enum import Enum
from typing import Iterable, List, Union


class AuthKind(str, Enum):
    """
    Closed set of credential kinds an endpoint may accept.

    The value is the display name used in error messages. ``rank`` orders
    kinds when an endpoint does not state its own preference; lower ranks
    are preferred.
    """
    SIGNED_TOKEN = "SignedToken"
    EXCHANGED_BEARER = "ExchangedBearer"
    SIGNED_PARAMS = "SignedParams"
    SHARED_SECRET = "SharedSecret"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: Union['AuthKind', str]) -> 'AuthKind':
        """
        Accept an AuthKind, its display name ("SignedToken") or its
        member name ("SIGNED_TOKEN").

        Raises:
            ValueError: If the value names no known kind
        """
        if isinstance(value, cls):
            return value
        for kind in cls:
            if value == kind.value or str(value).upper() == kind.name:
                return kind
        raise ValueError(f"Unknown auth kind: {value!r}")


_RANKS = {
    AuthKind.SIGNED_TOKEN: 10,
    AuthKind.EXCHANGED_BEARER: 15,
    AuthKind.SIGNED_PARAMS: 20,
    AuthKind.SHARED_SECRET: 30,
}


def sort_by_rank(kinds: Iterable[AuthKind]) -> List[AuthKind]:
    """Order kinds by precedence rank."""
    return sorted(kinds, key=lambda kind: kind.rank)
