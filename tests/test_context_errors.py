"""Tests for error handling and recovery."""

import pytest

from tablevoice.context import ContextError, ContextEvent, ContextType, RecoveryAction


@pytest.fixture
def payment_manager(context_manager):
    """Context manager in the payment context (idle -> cart -> payment)."""
    assert context_manager.set_context(ContextType.CART_MANAGEMENT)
    assert context_manager.set_context(ContextType.PAYMENT)
    return context_manager


def test_card_declined_enters_error_recovery(payment_manager):
    errors = []
    payment_manager.on(ContextEvent.CONTEXT_ERROR, errors.append)

    assert payment_manager.handle_error({"message": "card declined"}, {}) is True

    assert payment_manager.is_in_context(ContextType.ERROR_RECOVERY)
    assert payment_manager.get_context_stack()[-1].type is ContextType.PAYMENT

    data = payment_manager.get_current_context().data
    assert data["error"] == "card declined"
    assert data["originalContext"] == "payment"
    assert data["retryCount"] == 1
    assert data["errorType"] == "unknown"

    assert len(errors) == 1
    assert isinstance(errors[0], ContextError)
    assert errors[0].original_context is ContextType.PAYMENT
    assert payment_manager.get_statistics()["error_count"] == 1

    metadata = payment_manager.get_current_context().metadata
    assert metadata.transition_reason == "error_handling"
    assert metadata.user_initiated is False


def test_retry_resumes_interrupted_context(payment_manager):
    payment_manager.handle_error({"message": "card declined"}, {})

    assert payment_manager.recover_from_error(RecoveryAction.RETRY) is True

    assert payment_manager.is_in_context(ContextType.PAYMENT)
    current = payment_manager.get_current_context()
    assert current.metadata.transition_reason == "error_recovery_retry"
    assert "resumedAt" in current.data


def test_retry_is_the_default_action(payment_manager):
    payment_manager.handle_error("terminal offline")
    assert payment_manager.recover_from_error() is True
    assert payment_manager.is_in_context(ContextType.PAYMENT)


def test_abort_clears_stack(payment_manager):
    payment_manager.handle_error({"message": "card declined"})

    assert payment_manager.recover_from_error(RecoveryAction.ABORT) is True

    assert payment_manager.is_in_context(ContextType.IDLE)
    assert payment_manager.get_stack_depth() == 0
    assert payment_manager.get_current_context().data == {"reason": "error_recovery_abort"}


def test_fallback_goes_to_menu_browsing(payment_manager):
    payment_manager.handle_error({"message": "card declined"})

    assert payment_manager.recover_from_error("fallback") is True
    assert payment_manager.is_in_context(ContextType.MENU_BROWSING)


def test_unknown_action_is_rejected(payment_manager):
    payment_manager.handle_error({"message": "card declined"})

    assert payment_manager.recover_from_error("reboot") is False
    assert payment_manager.is_in_context(ContextType.ERROR_RECOVERY)


def test_recover_outside_error_recovery(payment_manager):
    assert payment_manager.recover_from_error(RecoveryAction.RETRY) is False
    assert payment_manager.is_in_context(ContextType.PAYMENT)


def test_retry_ceiling(payment_manager):
    for expected_retry in (1, 2):
        assert payment_manager.handle_error({"message": "card declined"}) is True
        assert payment_manager.get_variable("retryCount") == expected_retry
        assert payment_manager.recover_from_error(RecoveryAction.RETRY)

    # Third consecutive failure reaches max_retries: stay put
    assert payment_manager.handle_error({"message": "card declined"}) is False
    assert payment_manager.is_in_context(ContextType.PAYMENT)
    assert payment_manager.get_statistics()["error_count"] == 3


def test_non_critical_context_does_not_enter_recovery(context_manager):
    errors = []
    context_manager.on(ContextEvent.CONTEXT_ERROR, errors.append)
    context_manager.set_context(ContextType.MENU_BROWSING)

    assert context_manager.handle_error(ValueError("image missing")) is False

    assert context_manager.is_in_context(ContextType.MENU_BROWSING)
    assert context_manager.get_statistics()["error_count"] == 1
    assert errors[0].error == "image missing"
    assert errors[0].error_type == "ValueError"


def test_error_mapping_type_and_details(payment_manager):
    payment_manager.handle_error(
        {"message": "terminal timeout", "type": "terminal"}, {"terminalId": "T-1"}
    )

    data = payment_manager.get_current_context().data
    assert data["errorType"] == "terminal"
    assert data["terminalId"] == "T-1"


def test_error_recovery_times_out_to_idle(payment_manager, scheduler):
    payment_manager.handle_error({"message": "card declined"})
    scheduler.advance(60_000)

    assert payment_manager.is_in_context(ContextType.IDLE)
    assert payment_manager.get_statistics()["timeout_count"] == 1
