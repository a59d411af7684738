"""Role-based access policy for catalog operations.

Authorization is an explicit check evaluated before a route body runs:
given an operation, the set of roles allowed to perform it, and the roles
of the caller, the call is either allowed or rejected with
``AccessDeniedError``. Operations without a rule are always rejected.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum

from src.catalog.core.exceptions import AccessDeniedError


class Role(StrEnum):
    LIBRARIAN = "LIBRARIAN"
    USER = "USER"


class CatalogOperation(StrEnum):
    GET_BOOK = "get_book"
    CHECK_AVAILABILITY = "check_availability"
    SET_AVAILABILITY = "set_availability"
    SEARCH = "search"


@dataclass(frozen=True)
class AccessRule:
    operation: str
    required_roles: frozenset[str]


def normalize_role(role: str, prefix: str = "ROLE_") -> str:
    """Canonical role name: upper-case, without the ``ROLE_`` prefix."""
    name = role.strip().upper()
    normalized_prefix = prefix.upper()
    if normalized_prefix and name.startswith(normalized_prefix):
        name = name[len(normalized_prefix):]
    return name


def normalize_roles(roles: Iterable[str], prefix: str = "ROLE_") -> frozenset[str]:
    return frozenset(
        normalize_role(role, prefix) for role in roles if isinstance(role, str) and role.strip()
    )


class AccessPolicy:
    """Maps operations to the roles allowed to perform them."""

    def __init__(self, rules: Iterable[AccessRule]) -> None:
        self._rules: dict[str, AccessRule] = {}
        for rule in rules:
            if rule.operation in self._rules:
                raise ValueError(f"Duplicate access rule for operation '{rule.operation}'")
            self._rules[rule.operation] = rule

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "AccessPolicy":
        return cls(
            AccessRule(operation=str(op), required_roles=frozenset(str(r) for r in roles))
            for op, roles in mapping.items()
        )

    def required_roles(self, operation: str) -> frozenset[str]:
        rule = self._rules.get(str(operation))
        return rule.required_roles if rule else frozenset()

    def is_allowed(self, operation: str, caller_roles: Iterable[str]) -> bool:
        required = self.required_roles(operation)
        if not required:
            return False
        return not required.isdisjoint(caller_roles)

    def check(self, operation: str, caller_roles: Iterable[str]) -> None:
        """Raise ``AccessDeniedError`` unless the caller may perform ``operation``."""
        roles = frozenset(caller_roles)
        if not self.is_allowed(operation, roles):
            raise AccessDeniedError(str(operation), self.required_roles(operation))


CATALOG_POLICY = AccessPolicy.from_mapping(
    {
        CatalogOperation.GET_BOOK: {Role.LIBRARIAN, Role.USER},
        CatalogOperation.CHECK_AVAILABILITY: {Role.LIBRARIAN, Role.USER},
        CatalogOperation.SET_AVAILABILITY: {Role.LIBRARIAN},
        CatalogOperation.SEARCH: {Role.LIBRARIAN, Role.USER},
    }
)
