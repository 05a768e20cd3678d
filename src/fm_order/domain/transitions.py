"""Legal successor table for order statuses.

Anything not listed here is rejected, never coerced. Cancellation is legal
from every status except the two terminal ones, and only for admins (checked
by the state machine, not here).
"""

from src.fm_common.enums import OrderStatus as S

TERMINAL: frozenset[S] = frozenset({S.COMPLETED, S.CANCELLED})

BIDDABLE: frozenset[S] = frozenset({S.PENDING, S.APPROVED})

# Leaving one of these for revision_pending or cancelled reverses the writer payout
PAID_STATES: frozenset[S] = frozenset({S.PAID, S.COMPLETED})

_FORWARD: dict[S, frozenset[S]] = {
    S.PENDING: frozenset({S.APPROVED}),
    S.APPROVED: frozenset({S.ASSIGNED}),
    S.ASSIGNED: frozenset({S.IN_PROGRESS}),
    S.IN_PROGRESS: frozenset({S.MANAGER_REVIEW}),
    S.MANAGER_REVIEW: frozenset({S.EDITING, S.IN_PROGRESS}),
    S.EDITING: frozenset({S.DELIVERED}),
    S.DELIVERED: frozenset({S.ACCEPTED_BY_CLIENT, S.REVISION_PENDING}),
    S.ACCEPTED_BY_CLIENT: frozenset({S.PAID}),
    S.PAID: frozenset({S.COMPLETED, S.REVISION_PENDING}),
    S.COMPLETED: frozenset({S.REVISION_PENDING}),
    S.REVISION_PENDING: frozenset({S.IN_PROGRESS, S.EDITING}),
    S.CANCELLED: frozenset(),
}

LEGAL_TRANSITIONS: dict[S, frozenset[S]] = {
    status: successors if status in TERMINAL else successors | {S.CANCELLED}
    for status, successors in _FORWARD.items()
}


def is_legal(current: S | str, requested: S | str) -> bool:
    return S(requested) in LEGAL_TRANSITIONS[S(current)]


def valid_next_statuses(current: S | str) -> list[str]:
    """Sorted successor values, for error messages and API hints."""
    return sorted(s.value for s in LEGAL_TRANSITIONS[S(current)])
