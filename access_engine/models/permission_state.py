"""
Permission states, action scopes and the merge rules shared by the resolver.

One rule is used everywhere: deny overrides, otherwise the widest allow
wins, otherwise the result is denied. Both merges only look at the
multiset of their inputs, so the outcome never depends on the order in
which a user's levels were assigned or loaded.
"""

from enum import Enum as PyEnum
from typing import Iterable, Optional

from access_engine.core.exceptions import ValidationException


class PermissionState(str, PyEnum):
    """Tri-state decision a single user level holds for a view or feature action."""

    ALLOW = "allow"
    DENY = "deny"
    INHERIT = "inherit"


class ActionScope(str, PyEnum):
    """
    Breadth of data a granted feature action applies to.

    Ordered own < team < company < any.
    """

    OWN = "own"
    TEAM = "team"
    COMPANY = "company"
    ANY = "any"

    @property
    def rank(self) -> int:
        return _SCOPE_RANK[self]


_SCOPE_RANK = {
    ActionScope.OWN: 0,
    ActionScope.TEAM: 1,
    ActionScope.COMPANY: 2,
    ActionScope.ANY: 3,
}


class FeatureAction(str, PyEnum):
    """Standard feature actions. Matrix writes reject anything else."""

    CREATE = "Create"
    READ = "Read"
    UPDATE = "Update"
    DELETE = "Delete"
    EXPORT = "Export"
    APPROVE = "Approve"
    PUBLISH = "Publish"


def parse_action(action: str) -> FeatureAction:
    """
    Parse an action name.

    Raises:
        ValidationException: If the action is not a standard feature action
    """
    try:
        return FeatureAction(action)
    except ValueError:
        raise ValidationException(f"Unknown feature action: {action}")


def merge_view_states(states: Iterable[PermissionState]) -> bool:
    """
    Merge the decisions several levels hold for one view.

    Returns:
        True if the view is visible (some level allows it and none denies it)
    """
    allowed = False
    for state in states:
        if state is PermissionState.DENY:
            return False
        elif state is PermissionState.ALLOW:
            allowed = True
        elif state is PermissionState.INHERIT:
            continue
        else:
            raise ValueError(f"Unhandled permission state: {state!r}")
    return allowed


def merge_feature_grants(
    grants: Iterable[tuple[PermissionState, Optional[ActionScope]]],
) -> Optional[ActionScope]:
    """
    Merge the (state, scope) pairs several levels hold for one feature action.

    Returns:
        The broadest granted scope, or None when the action is denied
        (explicitly by any level, or because no level allows it)
    """
    widest: Optional[ActionScope] = None
    for state, scope in grants:
        if state is PermissionState.DENY:
            return None
        elif state is PermissionState.ALLOW:
            if scope is None:
                # Allow rows always carry a scope once validated; treat a bad row as no grant
                continue
            if widest is None or scope.rank > widest.rank:
                widest = scope
        elif state is PermissionState.INHERIT:
            continue
        else:
            raise ValueError(f"Unhandled permission state: {state!r}")
    return widest


def validate_grant(state: PermissionState, scope: Optional[ActionScope]) -> None:
    """
    Check that a feature grant is well formed.

    Allow requires a scope; deny and inherit must not carry one.

    Raises:
        ValidationException: If the pair is malformed
    """
    if state is PermissionState.ALLOW and scope is None:
        raise ValidationException("An 'allow' feature permission requires a scope")
    if state is not PermissionState.ALLOW and scope is not None:
        raise ValidationException(f"A '{state.value}' feature permission cannot carry a scope")


def parse_state(state: str | PermissionState) -> PermissionState:
    """
    Parse a permission state.

    Raises:
        ValidationException: If the value is not allow, deny or inherit
    """
    try:
        return PermissionState(state)
    except ValueError:
        raise ValidationException(f"Unknown permission state: {state}")


def parse_scope(scope: str | ActionScope | None) -> Optional[ActionScope]:
    """
    Parse an optional action scope.

    Raises:
        ValidationException: If the value is not own, team, company or any
    """
    if scope is None:
        return None
    try:
        return ActionScope(scope)
    except ValueError:
        raise ValidationException(f"Unknown action scope: {scope}")
