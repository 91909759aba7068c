"""Submission workflow transition table.

Every stage change goes through this table: an action is legal only from
the stages listed for it. The table is pure data; applying a transition
(conditional update, side effects) lives in ``submission_service``.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.errors import InvalidTransitionError
from app.db.enums import WorkflowAction, WorkflowStage


@dataclass(frozen=True, slots=True)
class Transition:
    action: WorkflowAction
    from_stages: frozenset[WorkflowStage]
    to_stage: WorkflowStage


def _t(action: WorkflowAction, from_stages: tuple[WorkflowStage, ...], to_stage: WorkflowStage) -> Transition:
    return Transition(action=action, from_stages=frozenset(from_stages), to_stage=to_stage)


TRANSITIONS: tuple[Transition, ...] = (
    _t(
        WorkflowAction.VALIDATE,
        (WorkflowStage.PENDING_VALIDATION,),
        WorkflowStage.VALIDATED,
    ),
    _t(
        WorkflowAction.CONFIRM_CALL,
        (WorkflowStage.VALIDATED,),
        WorkflowStage.CALL_CONFIRMED,
    ),
    # Re-issuing a payment link (after rejection or expiry) keeps the stage
    _t(
        WorkflowAction.REQUEST_PAYMENT,
        (WorkflowStage.CALL_CONFIRMED, WorkflowStage.PAYMENT_REQUESTED),
        WorkflowStage.PAYMENT_REQUESTED,
    ),
    _t(
        WorkflowAction.UPLOAD_RECEIPT,
        (WorkflowStage.PAYMENT_REQUESTED,),
        WorkflowStage.PAYMENT_UPLOADED,
    ),
    _t(
        WorkflowAction.CONFIRM_PAYMENT,
        (WorkflowStage.PAYMENT_UPLOADED,),
        WorkflowStage.PAYMENT_CONFIRMED,
    ),
    _t(
        WorkflowAction.REJECT_PAYMENT,
        (WorkflowStage.PAYMENT_UPLOADED,),
        WorkflowStage.PAYMENT_REQUESTED,
    ),
    # Additional document requests are allowed until everything is verified
    _t(
        WorkflowAction.REQUEST_DOCUMENTS,
        (
            WorkflowStage.PAYMENT_CONFIRMED,
            WorkflowStage.DOCUMENTS_REQUESTED,
            WorkflowStage.DOCUMENTS_UPLOADED,
        ),
        WorkflowStage.DOCUMENTS_REQUESTED,
    ),
    _t(
        WorkflowAction.UPLOAD_DOCUMENTS,
        (WorkflowStage.DOCUMENTS_REQUESTED, WorkflowStage.DOCUMENTS_UPLOADED),
        WorkflowStage.DOCUMENTS_UPLOADED,
    ),
    _t(
        WorkflowAction.VERIFY_DOCUMENTS,
        (WorkflowStage.DOCUMENTS_UPLOADED,),
        WorkflowStage.DOCUMENTS_VERIFIED,
    ),
    # A later rejection or replacement request sends the file back to review
    _t(
        WorkflowAction.REOPEN_DOCUMENTS,
        (WorkflowStage.DOCUMENTS_VERIFIED,),
        WorkflowStage.DOCUMENTS_UPLOADED,
    ),
    _t(
        WorkflowAction.CONVERT,
        (WorkflowStage.DOCUMENTS_VERIFIED,),
        WorkflowStage.CONVERTED_TO_CLIENT,
    ),
)

_BY_ACTION: dict[WorkflowAction, Transition] = {t.action: t for t in TRANSITIONS}

TERMINAL_STAGES = frozenset({WorkflowStage.CONVERTED_TO_CLIENT})


def _as_stage(stage: WorkflowStage | str) -> WorkflowStage:
    return stage if isinstance(stage, WorkflowStage) else WorkflowStage(stage)


def get_transition(action: WorkflowAction, current_stage: WorkflowStage | str) -> Transition:
    """Return the transition for ``action`` from ``current_stage`` or raise."""
    stage = _as_stage(current_stage)
    transition = _BY_ACTION[action]
    if stage not in transition.from_stages:
        raise InvalidTransitionError(action.value, stage.value)
    return transition


def can_apply(action: WorkflowAction, current_stage: WorkflowStage | str) -> bool:
    return _as_stage(current_stage) in _BY_ACTION[action].from_stages


def allowed_actions(current_stage: WorkflowStage | str) -> list[WorkflowAction]:
    """Actions that are legal from ``current_stage``, in table order."""
    stage = _as_stage(current_stage)
    return [t.action for t in TRANSITIONS if stage in t.from_stages]
