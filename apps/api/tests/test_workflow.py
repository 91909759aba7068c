"""Tests for the submission workflow transition table."""

import pytest

from app.core import workflow
from app.core.errors import InvalidTransitionError
from app.db.enums import WorkflowAction, WorkflowStage


def test_every_action_has_exactly_one_transition():
    actions = [t.action for t in workflow.TRANSITIONS]
    assert sorted(a.value for a in actions) == sorted(a.value for a in WorkflowAction)


def test_happy_path_walks_every_stage_in_order():
    path = [
        WorkflowAction.VALIDATE,
        WorkflowAction.CONFIRM_CALL,
        WorkflowAction.REQUEST_PAYMENT,
        WorkflowAction.UPLOAD_RECEIPT,
        WorkflowAction.CONFIRM_PAYMENT,
        WorkflowAction.REQUEST_DOCUMENTS,
        WorkflowAction.UPLOAD_DOCUMENTS,
        WorkflowAction.VERIFY_DOCUMENTS,
        WorkflowAction.CONVERT,
    ]
    stage = WorkflowStage.PENDING_VALIDATION
    visited = [stage]
    for action in path:
        stage = workflow.get_transition(action, stage).to_stage
        visited.append(stage)

    assert visited == list(WorkflowStage)


def test_skipping_a_stage_is_rejected():
    with pytest.raises(InvalidTransitionError) as exc:
        workflow.get_transition(WorkflowAction.CONFIRM_CALL, WorkflowStage.PENDING_VALIDATION)

    assert exc.value.action == "confirm_call"
    assert exc.value.current_stage == "pending_validation"
    assert "pending_validation" in exc.value.message


def test_conversion_requires_verified_documents():
    for stage in WorkflowStage:
        if stage == WorkflowStage.DOCUMENTS_VERIFIED:
            continue
        assert not workflow.can_apply(WorkflowAction.CONVERT, stage)


def test_terminal_stage_allows_nothing():
    assert workflow.allowed_actions(WorkflowStage.CONVERTED_TO_CLIENT) == []
    assert WorkflowStage.CONVERTED_TO_CLIENT in workflow.TERMINAL_STAGES


def test_payment_link_can_be_reissued_while_waiting():
    transition = workflow.get_transition(
        WorkflowAction.REQUEST_PAYMENT, WorkflowStage.PAYMENT_REQUESTED
    )
    assert transition.to_stage == WorkflowStage.PAYMENT_REQUESTED


def test_rejected_payment_returns_to_payment_requested():
    transition = workflow.get_transition(WorkflowAction.REJECT_PAYMENT, "payment_uploaded")
    assert transition.to_stage == WorkflowStage.PAYMENT_REQUESTED


def test_additional_uploads_keep_documents_uploaded():
    assert workflow.can_apply(WorkflowAction.UPLOAD_DOCUMENTS, WorkflowStage.DOCUMENTS_UPLOADED)
    assert workflow.can_apply(WorkflowAction.REQUEST_DOCUMENTS, WorkflowStage.DOCUMENTS_UPLOADED)
    assert not workflow.can_apply(WorkflowAction.UPLOAD_DOCUMENTS, WorkflowStage.DOCUMENTS_VERIFIED)


def test_verified_documents_can_be_reopened():
    assert workflow.allowed_actions(WorkflowStage.DOCUMENTS_VERIFIED) == [
        WorkflowAction.REOPEN_DOCUMENTS,
        WorkflowAction.CONVERT,
    ]
    transition = workflow.get_transition(WorkflowAction.REOPEN_DOCUMENTS, "documents_verified")
    assert transition.to_stage == WorkflowStage.DOCUMENTS_UPLOADED


def test_allowed_actions_from_payment_uploaded():
    assert workflow.allowed_actions(WorkflowStage.PAYMENT_UPLOADED) == [
        WorkflowAction.CONFIRM_PAYMENT,
        WorkflowAction.REJECT_PAYMENT,
    ]
