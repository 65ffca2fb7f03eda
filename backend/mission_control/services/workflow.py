"""
Deliverable status workflow.

draft → review → approved → published → archived, with the backward moves
reviewers need (send back, revoke approval, restore). The table lives at the
mutation boundary: every status change a service performs goes through
``check_transition`` first.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from mission_control.errors import InvalidTransitionError, ValidationError
from mission_control.models.deliverable import DeliverableStatus

logger = logging.getLogger(__name__)


# Transition table: current_status -> {target_status: label}
TRANSITIONS: Dict[str, Dict[str, str]] = {
    "draft":     {"review": "Submit for Review"},
    "review":    {"approved": "Approve", "draft": "Send Back"},
    "approved":  {"published": "Publish", "review": "Revoke Approval"},
    "published": {"archived": "Archive"},
    "archived":  {"draft": "Restore"},
}

STATUS_VALUES = [s.value for s in DeliverableStatus]


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of validating one transition."""
    allowed: bool
    current: str
    target: str
    label: Optional[str] = None
    reason: Optional[str] = None


def parse_status(value: str) -> str:
    """Normalize a status value, rejecting anything outside the enum."""
    if isinstance(value, DeliverableStatus):
        return value.value
    if value not in STATUS_VALUES:
        raise ValidationError(
            f"Invalid status '{value}'. Expected one of: {', '.join(STATUS_VALUES)}"
        )
    return value


def check_transition(current: str, target: str) -> TransitionCheck:
    """Validate ``current → target`` against the table. Pure, no I/O."""
    target = parse_status(target)
    current = parse_status(current)

    if current == target:
        return TransitionCheck(False, current, target, reason=f"Deliverable is already {current}")

    label = TRANSITIONS.get(current, {}).get(target)
    if label is None:
        allowed = ", ".join(TRANSITIONS.get(current, {})) or "none"
        return TransitionCheck(
            False,
            current,
            target,
            reason=f"Cannot move from {current} to {target} (allowed: {allowed})",
        )
    return TransitionCheck(True, current, target, label=label)


def ensure_transition(current: str, target: str) -> TransitionCheck:
    """Like ``check_transition`` but raises InvalidTransitionError when rejected."""
    check = check_transition(current, target)
    if not check.allowed:
        logger.info(f"[Workflow] Rejected transition {current} → {target}: {check.reason}")
        raise InvalidTransitionError(current, target, check.reason)
    return check


def available_transitions(current: str) -> List[dict]:
    """Outgoing transitions for a status, for clients that render workflow actions."""
    return [
        {"from": current, "to": target, "label": label}
        for target, label in TRANSITIONS.get(parse_status(current), {}).items()
    ]


def transition_table() -> List[dict]:
    """Full table, flattened."""
    rows = []
    for current in STATUS_VALUES:
        rows.extend(available_transitions(current))
    return rows
