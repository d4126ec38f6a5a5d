"""
Lifecycle state for transactions, deployments and asynchronous reads.

Each state is a small frozen dataclass carrying only the data valid for that
state (a hash exists only once the network accepted the transaction, an error
message only on failure). A machine holds exactly one live state; operations
move it forward through a fixed transition table, and terminal states return
to idle after a display timeout unless a new operation starts first.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, fields
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    FrozenSet,
    Generic,
    List,
    Optional,
    TypeVar,
    Union,
)

import structlog

from ...config import settings
from .errors import InvalidTransition
from .models import DeployMultiTokenResult


logger = structlog.stdlib.get_logger("erc1155.lifecycle")

T = TypeVar("T")
S = TypeVar("S")
Sleep = Callable[[float], Awaitable[None]]
Listener = Callable[[Any], None]


# ---------------------------
# Transaction / request state
# ---------------------------

class RequestStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"          # Submitted to the signer, awaiting a hash
    CONFIRMING = "confirming"    # Accepted by the network, awaiting inclusion
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RequestIdle:
    status: ClassVar[RequestStatus] = RequestStatus.IDLE


@dataclass(frozen=True)
class RequestPending:
    status: ClassVar[RequestStatus] = RequestStatus.PENDING


@dataclass(frozen=True)
class RequestConfirming:
    hash: str
    status: ClassVar[RequestStatus] = RequestStatus.CONFIRMING


@dataclass(frozen=True)
class RequestSuccess:
    hash: str
    status: ClassVar[RequestStatus] = RequestStatus.SUCCESS


@dataclass(frozen=True)
class RequestError:
    error: str
    status: ClassVar[RequestStatus] = RequestStatus.ERROR


RequestState = Union[RequestIdle, RequestPending, RequestConfirming, RequestSuccess, RequestError]


# ---------------------------
# Deployment state
# ---------------------------

class DeploymentStatus(str, Enum):
    IDLE = "idle"
    DEPLOYING = "deploying"
    ACTIVATING = "activating"
    INITIALIZING = "initializing"
    REGISTERING = "registering"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class DeploymentIdle:
    status: ClassVar[DeploymentStatus] = DeploymentStatus.IDLE


@dataclass(frozen=True)
class Deploying:
    status: ClassVar[DeploymentStatus] = DeploymentStatus.DEPLOYING


@dataclass(frozen=True)
class Activating:
    status: ClassVar[DeploymentStatus] = DeploymentStatus.ACTIVATING


@dataclass(frozen=True)
class Initializing:
    status: ClassVar[DeploymentStatus] = DeploymentStatus.INITIALIZING


@dataclass(frozen=True)
class Registering:
    status: ClassVar[DeploymentStatus] = DeploymentStatus.REGISTERING


@dataclass(frozen=True)
class DeploymentSuccess:
    result: DeployMultiTokenResult
    status: ClassVar[DeploymentStatus] = DeploymentStatus.SUCCESS


@dataclass(frozen=True)
class DeploymentError:
    error: str
    # Set when the service deployed but a follow-up phase failed
    result: Optional[DeployMultiTokenResult] = None
    status: ClassVar[DeploymentStatus] = DeploymentStatus.ERROR


DeploymentState = Union[
    DeploymentIdle,
    Deploying,
    Activating,
    Initializing,
    Registering,
    DeploymentSuccess,
    DeploymentError,
]


# ---------------------------
# Async read state
# ---------------------------

class AsyncStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class AsyncIdle:
    status: ClassVar[AsyncStatus] = AsyncStatus.IDLE


@dataclass(frozen=True)
class AsyncLoading:
    status: ClassVar[AsyncStatus] = AsyncStatus.LOADING


@dataclass(frozen=True)
class AsyncSuccess(Generic[T]):
    data: T
    status: ClassVar[AsyncStatus] = AsyncStatus.SUCCESS


@dataclass(frozen=True)
class AsyncError:
    error: str
    status: ClassVar[AsyncStatus] = AsyncStatus.ERROR


AsyncState = Union[AsyncIdle, AsyncLoading, AsyncSuccess[T], AsyncError]


def _render(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_render(item) for item in value]
    return value


def state_to_dict(state: Any) -> Dict[str, Any]:
    """Flatten any state variant into a JSON-friendly dict."""
    payload: Dict[str, Any] = {"status": state.status.value}
    for field in fields(state):
        payload[field.name] = _render(getattr(state, field.name))
    return payload


# ---------------------------
# Machines
# ---------------------------

class Operation(Generic[S]):
    """
    Handle for one in-flight operation.

    The handle tracks its own position so each operation only ever moves
    forward, even when a second operation on the same machine overwrites the
    shared state in the meantime.
    """

    def __init__(self, machine: "LifecycleMachine[S]", first: S):
        self._machine = machine
        self._current = first

    @property
    def state(self) -> S:
        return self._current

    def to(self, state: S) -> S:
        allowed = self._machine.TRANSITIONS.get(self._current.status, frozenset())
        if state.status not in allowed:
            raise InvalidTransition(
                f"{self._machine.name}: cannot move from {self._current.status.value} "
                f"to {state.status.value}"
            )
        self._current = state
        self._machine._write(state)
        return state

    def fail(self, error: Union[str, BaseException]) -> S:
        return self.to(self._machine.error_state(str(error) or type(error).__name__))


class LifecycleMachine(Generic[S]):
    """Single live state plus a cancellable return-to-idle timer."""

    TRANSITIONS: ClassVar[Dict[Any, FrozenSet[Any]]] = {}
    TERMINAL: ClassVar[FrozenSet[Any]] = frozenset()

    def __init__(
        self,
        *,
        name: str,
        display_timeout: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.name = name
        self.display_timeout = (
            settings.tx_status_display_seconds if display_timeout is None else display_timeout
        )
        if self.display_timeout < 0:
            raise ValueError("display_timeout must be >= 0")
        self._sleep = sleep
        self._state: S = self.idle_state()
        self._listeners: List[Listener] = []
        self._reset_task: Optional[asyncio.Task] = None

    # Subclass hooks
    def idle_state(self) -> S:
        raise NotImplementedError

    def first_state(self) -> S:
        raise NotImplementedError

    def error_state(self, message: str) -> S:
        raise NotImplementedError

    @property
    def state(self) -> S:
        return self._state

    @property
    def reset_scheduled(self) -> bool:
        return self._reset_task is not None and not self._reset_task.done()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(state)` on every transition; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def begin(self) -> Operation[S]:
        """Start a new operation, overwriting whatever terminal state was displayed."""
        self._cancel_reset()
        first = self.first_state()
        self._write(first)
        return Operation(self, first)

    def reset(self) -> None:
        """Force the displayed state back to idle. Does not touch on-chain work."""
        self._cancel_reset()
        self._write(self.idle_state())

    def _write(self, state: S) -> None:
        self._state = state
        detail = {
            key: value
            for key, value in state_to_dict(state).items()
            if key in ("hash", "error")
        }
        logger.info("tx_state", machine=self.name, status=state.status.value, **detail)

        for listener in list(self._listeners):
            listener(state)

        if state.status in self.TERMINAL:
            self._schedule_reset(state)

    def _schedule_reset(self, terminal: S) -> None:
        self._cancel_reset()
        if self.display_timeout == 0:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("tx_state_reset_skipped", machine=self.name, reason="no running loop")
            return
        self._reset_task = loop.create_task(self._auto_reset(terminal))

    def _cancel_reset(self) -> None:
        task, self._reset_task = self._reset_task, None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    async def _auto_reset(self, terminal: S) -> None:
        await self._sleep(self.display_timeout)
        # A newer operation may have replaced the terminal state meanwhile.
        if self._state is terminal:
            self._reset_task = None
            self._write(self.idle_state())


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class RequestStateMachine(LifecycleMachine[RequestState]):
    """idle -> pending -> confirming -> success | error -> idle"""

    TRANSITIONS = {
        RequestStatus.IDLE: frozenset({RequestStatus.PENDING}),
        RequestStatus.PENDING: frozenset({RequestStatus.CONFIRMING, RequestStatus.ERROR}),
        RequestStatus.CONFIRMING: frozenset({RequestStatus.SUCCESS, RequestStatus.ERROR}),
        RequestStatus.SUCCESS: frozenset({RequestStatus.IDLE}),
        RequestStatus.ERROR: frozenset({RequestStatus.IDLE}),
    }
    TERMINAL = frozenset({RequestStatus.SUCCESS, RequestStatus.ERROR})

    def __init__(self, *, name: str = "tx", display_timeout: Optional[float] = None, sleep: Sleep = asyncio.sleep):
        super().__init__(name=name, display_timeout=display_timeout, sleep=sleep)

    def idle_state(self) -> RequestState:
        return RequestIdle()

    def first_state(self) -> RequestState:
        return RequestPending()

    def error_state(self, message: str) -> RequestState:
        return RequestError(error=message)


class DeploymentStateMachine(LifecycleMachine[DeploymentState]):
    """idle -> deploying -> activating -> initializing -> registering -> success | error -> idle"""

    TRANSITIONS = {
        DeploymentStatus.IDLE: frozenset({DeploymentStatus.DEPLOYING}),
        DeploymentStatus.DEPLOYING: frozenset({DeploymentStatus.ACTIVATING, DeploymentStatus.ERROR}),
        DeploymentStatus.ACTIVATING: frozenset({DeploymentStatus.INITIALIZING, DeploymentStatus.ERROR}),
        DeploymentStatus.INITIALIZING: frozenset({DeploymentStatus.REGISTERING, DeploymentStatus.ERROR}),
        DeploymentStatus.REGISTERING: frozenset({DeploymentStatus.SUCCESS, DeploymentStatus.ERROR}),
        DeploymentStatus.SUCCESS: frozenset({DeploymentStatus.IDLE}),
        DeploymentStatus.ERROR: frozenset({DeploymentStatus.IDLE}),
    }
    TERMINAL = frozenset({DeploymentStatus.SUCCESS, DeploymentStatus.ERROR})

    def __init__(self, *, name: str = "deploy", display_timeout: Optional[float] = None, sleep: Sleep = asyncio.sleep):
        super().__init__(name=name, display_timeout=display_timeout, sleep=sleep)

    def idle_state(self) -> DeploymentState:
        return DeploymentIdle()

    def first_state(self) -> DeploymentState:
        return Deploying()

    def error_state(self, message: str) -> DeploymentState:
        return DeploymentError(error=message)

    @property
    def is_deploying(self) -> bool:
        return self.state.status in {
            DeploymentStatus.DEPLOYING,
            DeploymentStatus.ACTIVATING,
            DeploymentStatus.INITIALIZING,
            DeploymentStatus.REGISTERING,
        }
