"""
Tests for the request and deployment lifecycle machines.
"""

import pytest

from stylus1155.core.erc1155.errors import InvalidTransition
from stylus1155.core.erc1155.models import DeployMultiTokenResult
from stylus1155.core.erc1155.state import (
    Activating,
    AsyncSuccess,
    DeploymentStateMachine,
    DeploymentStatus,
    DeploymentSuccess,
    Initializing,
    Registering,
    RequestConfirming,
    RequestError,
    RequestIdle,
    RequestStateMachine,
    RequestStatus,
    RequestSuccess,
    state_to_dict,
)

from conftest import FakeClock


def statuses(recorded):
    return [state.status.value for state in recorded]


# =============================================================================
# Transitions
# =============================================================================

class TestRequestTransitions:
    """Forward-only movement through the request lifecycle."""

    def test_starts_idle(self):
        machine = RequestStateMachine(display_timeout=0)
        assert machine.state == RequestIdle()

    def test_happy_path_visits_every_state(self):
        machine = RequestStateMachine(display_timeout=0)
        seen = []
        machine.subscribe(seen.append)

        op = machine.begin()
        op.to(RequestConfirming(hash="0xabc"))
        op.to(RequestSuccess(hash="0xabc"))

        assert statuses(seen) == ["pending", "confirming", "success"]
        assert machine.state == RequestSuccess(hash="0xabc")

    def test_pending_cannot_skip_to_success(self):
        machine = RequestStateMachine(display_timeout=0)
        op = machine.begin()

        with pytest.raises(InvalidTransition):
            op.to(RequestSuccess(hash="0xabc"))

        assert machine.state.status == RequestStatus.PENDING

    def test_fail_from_pending(self):
        machine = RequestStateMachine(display_timeout=0)
        op = machine.begin()

        op.fail(ValueError("boom"))

        assert machine.state == RequestError(error="boom")

    def test_fail_uses_type_name_for_empty_message(self):
        machine = RequestStateMachine(display_timeout=0)
        op = machine.begin()

        op.fail(KeyboardInterrupt())

        assert machine.state == RequestError(error="KeyboardInterrupt")

    def test_cannot_leave_terminal_state_forward(self):
        machine = RequestStateMachine(display_timeout=0)
        op = machine.begin()
        op.fail("nope")

        with pytest.raises(InvalidTransition):
            op.to(RequestConfirming(hash="0x1"))

    def test_unsubscribe(self):
        machine = RequestStateMachine(display_timeout=0)
        seen = []
        unsubscribe = machine.subscribe(seen.append)

        machine.begin()
        unsubscribe()
        machine.reset()

        assert statuses(seen) == ["pending"]

    def test_no_running_loop_keeps_terminal_state(self):
        machine = RequestStateMachine(display_timeout=5)
        op = machine.begin()
        op.to(RequestConfirming(hash="0x1"))
        op.to(RequestSuccess(hash="0x1"))

        assert machine.state.status == RequestStatus.SUCCESS
        assert not machine.reset_scheduled

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            RequestStateMachine(display_timeout=-1)


class TestDeploymentTransitions:
    """Deployment phases run in a fixed order."""

    def test_phases_in_order(self):
        machine = DeploymentStateMachine(display_timeout=0)
        result = DeployMultiTokenResult(contract_address="0x1", tx_hash="0x2", success=True)

        op = machine.begin()
        assert machine.is_deploying
        op.to(Activating())
        op.to(Initializing())
        op.to(Registering())
        op.to(DeploymentSuccess(result=result))

        assert machine.state.status == DeploymentStatus.SUCCESS
        assert not machine.is_deploying

    def test_cannot_skip_activation(self):
        machine = DeploymentStateMachine(display_timeout=0)
        op = machine.begin()

        with pytest.raises(InvalidTransition):
            op.to(Initializing())

    def test_error_from_any_phase(self):
        machine = DeploymentStateMachine(display_timeout=0)
        op = machine.begin()
        op.to(Activating())

        op.fail("no code")

        assert machine.state.status == DeploymentStatus.ERROR
        assert machine.state.error == "no code"


class TestStateToDict:
    def test_flattens_nested_results(self):
        result = DeployMultiTokenResult(contract_address="0x1", tx_hash="0x2", success=True)
        payload = state_to_dict(DeploymentSuccess(result=result))

        assert payload["status"] == "success"
        assert payload["result"]["contractAddress"] == "0x1"

    def test_hash_and_error_fields(self):
        assert state_to_dict(RequestConfirming(hash="0xabc")) == {"status": "confirming", "hash": "0xabc"}
        assert state_to_dict(RequestError(error="bad")) == {"status": "error", "error": "bad"}
        assert state_to_dict(RequestIdle()) == {"status": "idle"}

    def test_async_success_list(self):
        assert state_to_dict(AsyncSuccess(data=[1, 2])) == {"status": "success", "data": [1, 2]}

    def test_status_is_plain_string(self):
        payload = state_to_dict(RequestConfirming(hash="0xabc"))

        assert type(payload["status"]) is str
        assert f"{payload['status']} {payload['hash']}" == "confirming 0xabc"


# =============================================================================
# Auto-reset
# =============================================================================

class TestAutoReset:
    """Terminal states return to idle after the display timeout."""

    @pytest.mark.asyncio
    async def test_success_resets_after_timeout(self, clock: FakeClock):
        machine = RequestStateMachine(display_timeout=5, sleep=clock.sleep)
        op = machine.begin()
        op.to(RequestConfirming(hash="0x1"))
        op.to(RequestSuccess(hash="0x1"))

        await clock.advance(4.9)
        assert machine.state.status == RequestStatus.SUCCESS

        await clock.advance(0.2)
        assert machine.state == RequestIdle()
        assert not machine.reset_scheduled

    @pytest.mark.asyncio
    async def test_error_resets_after_timeout(self, clock: FakeClock):
        machine = RequestStateMachine(display_timeout=5, sleep=clock.sleep)
        machine.begin().fail("rejected")

        await clock.advance(5)

        assert machine.state == RequestIdle()

    @pytest.mark.asyncio
    async def test_new_operation_cancels_pending_reset(self, clock: FakeClock):
        machine = RequestStateMachine(display_timeout=5, sleep=clock.sleep)
        op = machine.begin()
        op.to(RequestConfirming(hash="0x1"))
        op.to(RequestSuccess(hash="0x1"))
        await clock.advance(2)

        machine.begin()
        assert not machine.reset_scheduled

        await clock.advance(10)
        assert machine.state.status == RequestStatus.PENDING

    @pytest.mark.asyncio
    async def test_manual_reset_cancels_timer(self, clock: FakeClock):
        machine = RequestStateMachine(display_timeout=5, sleep=clock.sleep)
        seen = []
        machine.begin().fail("rejected")
        machine.subscribe(seen.append)

        machine.reset()
        await clock.advance(10)

        assert statuses(seen) == ["idle"]

    @pytest.mark.asyncio
    async def test_zero_timeout_keeps_terminal_state(self, clock: FakeClock):
        machine = RequestStateMachine(display_timeout=0, sleep=clock.sleep)
        machine.begin().fail("rejected")

        await clock.advance(100)

        assert machine.state.status == RequestStatus.ERROR
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_deployment_success_resets(self, clock: FakeClock):
        machine = DeploymentStateMachine(display_timeout=3, sleep=clock.sleep)
        result = DeployMultiTokenResult(contract_address="0x1", tx_hash="0x2", success=True)
        op = machine.begin()
        for state in (Activating(), Initializing(), Registering(), DeploymentSuccess(result=result)):
            op.to(state)

        await clock.advance(3)

        assert machine.state.status == DeploymentStatus.IDLE
