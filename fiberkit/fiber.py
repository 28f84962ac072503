"""Symmetric fibers: callbacks that can suspend themselves and be resumed later.

Every OS thread gets a main fiber on first use of :func:`get_this`. User
fibers switch back either to the thread's scheduler fiber (the main fiber
by default) or to the main fiber itself. Only one fiber of a thread runs at
any moment; each user fiber executes on a helper thread and control is handed
over explicitly.
"""

from __future__ import annotations

import enum
import itertools
import threading
import weakref
from typing import Callable, Optional

__all__ = [
    "State",
    "Fiber",
    "get_this",
    "set_this",
    "get_fiber_id",
    "set_scheduler_fiber",
    "total_fibers",
    "DEFAULT_STACK_SIZE",
]

DEFAULT_STACK_SIZE = 128000

_ids = itertools.count()
_count_lock = threading.Lock()
_live_fibers = 0


def _register(fiber: "Fiber") -> None:
    global _live_fibers
    with _count_lock:
        _live_fibers += 1
    weakref.finalize(fiber, _unregister)


def _unregister() -> None:
    global _live_fibers
    with _count_lock:
        _live_fibers -= 1


class State(enum.Enum):
    READY = 0
    RUNNING = 1
    TERM = 2


class _ThreadState:
    """Fiber bookkeeping of one logical thread."""

    __slots__ = ("current", "thread_fiber", "scheduler_fiber")

    def __init__(self) -> None:
        self.current: Optional[Fiber] = None
        self.thread_fiber: Optional[Fiber] = None
        self.scheduler_fiber: Optional[Fiber] = None


_local = threading.local()


def _thread_state() -> _ThreadState:
    state = getattr(_local, "state", None)
    if state is None:
        state = _ThreadState()
        _local.state = state
    return state


class Fiber:
    """A unit of execution that runs ``callback`` and may yield part way through."""

    def __init__(
        self,
        callback: Callable[[], object],
        stack_size: int = 0,
        run_in_scheduler: bool = True,
    ) -> None:
        self._callback: Optional[Callable[[], object]] = callback
        self._run_in_scheduler = run_in_scheduler
        self._state = State.READY
        self._stack_size = stack_size or DEFAULT_STACK_SIZE
        self._is_main = False
        self._owner: Optional[_ThreadState] = None
        self._setup()

    @classmethod
    def _new_main(cls, owner: _ThreadState) -> "Fiber":
        fiber = cls.__new__(cls)
        fiber._callback = None
        fiber._run_in_scheduler = False
        fiber._state = State.RUNNING
        fiber._stack_size = 0
        fiber._is_main = True
        fiber._owner = owner
        fiber._setup()
        return fiber

    def _setup(self) -> None:
        self._wake = threading.Semaphore(0)
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None
        self.lock = threading.Lock()
        with _count_lock:
            self._id = next(_ids)
        _register(self)

    @property
    def id(self) -> int:
        return self._id

    @property
    def state(self) -> State:
        return self._state

    @property
    def stack_size(self) -> int:
        return self._stack_size

    @property
    def run_in_scheduler(self) -> bool:
        return self._run_in_scheduler

    def __repr__(self) -> str:
        return f"Fiber(id={self._id}, state={self._state.name})"

    def _return_target(self, owner: _ThreadState) -> "Fiber":
        target = owner.scheduler_fiber if self._run_in_scheduler else owner.thread_fiber
        if target is None:
            raise RuntimeError("no fiber to switch back to")
        return target

    def reset(self, callback: Callable[[], object]) -> None:
        """Reuse a finished fiber for a new callback."""
        if self._is_main or self._state is not State.TERM:
            raise RuntimeError("only a finished user fiber can be reset")
        self._callback = callback
        self._state = State.READY
        self._thread = None
        self._error = None

    def resume(self) -> None:
        """Run the fiber until it yields or finishes.

        An exception raised by the callback is re-raised here.
        """
        if self._state is not State.READY:
            raise RuntimeError(f"cannot resume a fiber in state {self._state.name}")
        owner = _thread_state()
        if owner.thread_fiber is None:
            get_this()
        caller = self._return_target(owner)

        self._state = State.RUNNING
        self._owner = owner
        owner.current = self
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._bootstrap,
                args=(owner,),
                name=f"fiber-{self._id}",
                daemon=True,
            )
            self._thread.start()
        else:
            self._wake.release()
        caller._wake.acquire()

        error, self._error = self._error, None
        if error is not None:
            raise error

    def yield_(self) -> None:
        """Hand control back to the fiber that resumed this one."""
        if self._state not in (State.RUNNING, State.TERM):
            raise RuntimeError(f"cannot yield a fiber in state {self._state.name}")
        if self._state is not State.TERM:
            self._state = State.READY
        owner = self._owner or _thread_state()
        target = self._return_target(owner)
        owner.current = target
        finished = self._state is State.TERM
        target._wake.release()
        if finished:
            return
        self._wake.acquire()

    def _bootstrap(self, owner: _ThreadState) -> None:
        _local.state = owner
        self._main_func()

    def _main_func(self) -> None:
        callback = self._callback
        try:
            if callback is not None:
                callback()
        except BaseException as exc:  # handed to the resumer
            self._error = exc
        self._callback = None
        self._state = State.TERM
        self.yield_()


def get_this() -> Fiber:
    """The fiber running in this thread, creating the thread's main fiber if needed."""
    state = _thread_state()
    if state.current is not None:
        return state.current
    main = Fiber._new_main(state)
    state.current = main
    state.thread_fiber = main
    state.scheduler_fiber = main
    return main


def set_this(fiber: Optional[Fiber]) -> None:
    """Record ``fiber`` as the one running in this thread."""
    _thread_state().current = fiber


def get_fiber_id() -> Optional[int]:
    """Id of the running fiber, or ``None`` if this thread has none."""
    current = _thread_state().current
    return current.id if current is not None else None


def set_scheduler_fiber(fiber: Optional[Fiber]) -> None:
    """Set the fiber that scheduled fibers switch back to."""
    _thread_state().scheduler_fiber = fiber


def total_fibers() -> int:
    """Number of fiber objects alive."""
    with _count_lock:
        return _live_fibers