"""
The set of credentials a client holds, and per-call resolution over it
"""

import logging
import threading
from typing import AbstractSet, Dict, Iterable, Iterator, List, Optional, Union

from ..exceptions import NoAcceptableAuthMethodError
from .methods import AuthMethod
from .types import AuthKind, sort_by_rank

logger = logging.getLogger(__name__)

KindsInput = Union[Iterable[AuthKind], Iterable[str]]


class AuthCollection:
    """
    Insertion-ordered set of AuthMethods, unique by kind.

    Writers replace the backing mapping wholesale under a lock; readers take
    a reference to the current mapping without locking and therefore never
    observe a partially applied update.
    """

    def __init__(self, *methods: AuthMethod):
        self._methods: Dict[AuthKind, AuthMethod] = {}
        self._write_lock = threading.Lock()
        for method in methods:
            self.add(method)

    def add(self, method: AuthMethod) -> None:
        """
        Add a method, replacing any held method of the same kind.

        A replaced method keeps its original insertion position.
        """
        if not isinstance(method, AuthMethod):
            raise TypeError(f"Expected an AuthMethod, got {type(method).__name__}")
        with self._write_lock:
            updated = dict(self._methods)
            updated[method.kind] = method
            self._methods = updated
        logger.debug(f"Configured {method.kind.value} authentication")

    replace = add

    def remove(self, kind: Union[AuthKind, str]) -> Optional[AuthMethod]:
        """Remove and return the method of ``kind``, if held."""
        kind = AuthKind.parse(kind)
        with self._write_lock:
            if kind not in self._methods:
                return None
            updated = dict(self._methods)
            removed = updated.pop(kind)
            self._methods = updated
        return removed

    def kinds(self) -> List[AuthKind]:
        """Held kinds in insertion order."""
        return list(self._methods)

    def get(self, kind: Union[AuthKind, str]) -> AuthMethod:
        """
        Return the held method of ``kind``.

        Raises:
            NoAcceptableAuthMethodError: If no method of that kind is held
        """
        return self.resolve([kind])

    def resolve(self, acceptable_kinds: KindsInput) -> AuthMethod:
        """
        Pick the method to use for an endpoint.

        Ordered inputs (lists, tuples) are taken as the endpoint's
        preference. Unordered inputs (sets) are ordered by precedence rank.

        Args:
            acceptable_kinds: Kinds the endpoint accepts

        Returns:
            AuthMethod: The first held method in preference order

        Raises:
            NoAcceptableAuthMethodError: If no held method is acceptable
        """
        methods = self._methods
        kinds = [AuthKind.parse(kind) for kind in acceptable_kinds]
        if isinstance(acceptable_kinds, AbstractSet):
            kinds = sort_by_rank(kinds)

        for kind in kinds:
            method = methods.get(kind)
            if method is not None:
                logger.debug(f"Resolved {kind.value} authentication")
                return method

        raise NoAcceptableAuthMethodError(
            [kind.value for kind in kinds],
            [kind.value for kind in methods]
        )

    def __contains__(self, kind: object) -> bool:
        try:
            return AuthKind.parse(kind) in self._methods
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._methods)

    def __iter__(self) -> Iterator[AuthMethod]:
        return iter(list(self._methods.values()))

    def __repr__(self) -> str:
        return f"AuthCollection({', '.join(kind.value for kind in self._methods)})"
