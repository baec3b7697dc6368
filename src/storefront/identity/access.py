"""Permission gate.

Permissions are flat: ``ADMIN`` is just another member and does not imply the
others. Each protected operation is described once by a ``Policy`` in
``POLICIES``; callers go through ``authorize`` instead of hand-rolling
ownership checks.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from storefront.exceptions import AuthError, ForbiddenError


class Permission(Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    ITEMCREATE = "ITEMCREATE"
    ITEMUPDATE = "ITEMUPDATE"
    ITEMDELETE = "ITEMDELETE"
    PERMISSIONUPDATE = "PERMISSIONUPDATE"


DEFAULT_PERMISSIONS = frozenset({Permission.USER})


def parse_permissions(values: Iterable[str | Permission]) -> frozenset[Permission]:
    """Convert permission names to ``Permission`` members.

    Raises ``ValueError`` naming the first unknown permission.
    """
    parsed = set()
    for value in values:
        if isinstance(value, Permission):
            parsed.add(value)
            continue
        try:
            parsed.add(Permission(str(value).upper()))
        except ValueError:
            raise ValueError(f"Unknown permission: {value!r}") from None
    return frozenset(parsed)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as seen by the rest of the system."""

    user_id: str
    email: str
    name: str = ""
    permissions: frozenset[Permission] = field(default_factory=frozenset)

    def has_any(self, required: Iterable[Permission]) -> bool:
        return bool(self.permissions & frozenset(required))

    def owns(self, owner_id: str | None) -> bool:
        return owner_id is not None and str(owner_id) == str(self.user_id)


@dataclass(frozen=True)
class Policy:
    name: str
    permissions: frozenset[Permission] = frozenset()
    owner_may: bool = False


def require_permission(identity: Identity, required: Iterable[Permission]) -> None:
    """Raise ``ForbiddenError`` unless the identity holds one of ``required``.

    An empty ``required`` set never matches.
    """
    required = frozenset(required)
    if not identity.has_any(required):
        names = ", ".join(sorted(p.value for p in required))
        raise ForbiddenError(f"You do not have sufficient permissions: {names}")


def is_allowed(policy: Policy, identity: Identity, owner_id: str | None = None) -> bool:
    if identity.has_any(policy.permissions):
        return True
    return policy.owner_may and identity.owns(owner_id)


def authorize(policy: Policy | str, identity: Identity | None, owner_id: str | None = None) -> Identity:
    """Check ``policy`` for ``identity`` and return the identity on success."""
    if isinstance(policy, str):
        policy = POLICIES[policy]
    if identity is None:
        raise AuthError()
    if not is_allowed(policy, identity, owner_id):
        raise ForbiddenError()
    return identity


def _policy(name: str, *permissions: Permission, owner_may: bool = False) -> Policy:
    return Policy(name=name, permissions=frozenset(permissions), owner_may=owner_may)


POLICIES: dict[str, Policy] = {
    policy.name: policy
    for policy in (
        _policy("item.create", Permission.USER, Permission.ITEMCREATE),
        _policy("item.update", Permission.ADMIN, Permission.ITEMUPDATE, owner_may=True),
        _policy("item.delete", Permission.ADMIN, Permission.ITEMDELETE, owner_may=True),
        _policy("user.list", Permission.ADMIN, Permission.PERMISSIONUPDATE),
        _policy("user.update_permissions", Permission.ADMIN, Permission.PERMISSIONUPDATE),
        _policy("order.create", Permission.USER),
        _policy("order.view", Permission.ADMIN, owner_may=True),
        _policy("cart.modify", owner_may=True),
        _policy("reconciliation.manage", Permission.ADMIN),
    )
}
