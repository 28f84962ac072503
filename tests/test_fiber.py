import threading

import pytest

from fiberkit.fiber import (
    DEFAULT_STACK_SIZE,
    Fiber,
    State,
    get_fiber_id,
    get_this,
    set_scheduler_fiber,
    total_fibers,
)


def test_get_this_returns_running_main():
    main = get_this()
    assert main.state is State.RUNNING
    assert get_this() is main
    assert get_fiber_id() == main.id


def test_new_fiber_is_ready_with_default_stack():
    f = Fiber(lambda: None)
    assert f.state is State.READY
    assert f.stack_size == DEFAULT_STACK_SIZE
    assert Fiber(lambda: None, 4096).stack_size == 4096


def test_ids_increase():
    a = Fiber(lambda: None)
    b = Fiber(lambda: None)
    assert b.id > a.id


def test_total_fibers_counts_new_fiber():
    before = total_fibers()
    f = Fiber(lambda: None)
    assert total_fibers() == before + 1
    assert f.state is State.READY


def test_resume_runs_to_completion():
    main = get_this()
    seen = []
    f = Fiber(lambda: seen.append(get_fiber_id()))
    f.resume()
    assert seen == [f.id]
    assert f.state is State.TERM
    assert get_this() is main


def test_yield_and_resume_interleave():
    get_this()
    order = []

    def body():
        for step in range(3):
            order.append(step)
            get_this().yield_()

    f = Fiber(body)
    states = []
    for _ in range(4):
        f.resume()
        states.append(f.state)
        order.append("main")
    assert order == [0, "main", 1, "main", 2, "main", "main"]
    assert states == [State.READY, State.READY, State.READY, State.TERM]


def test_resume_finished_fiber_raises():
    f = Fiber(lambda: None)
    f.resume()
    with pytest.raises(RuntimeError):
        f.resume()


def test_callback_exception_propagates():
    main = get_this()
    f = Fiber(lambda: 1 / 0)
    with pytest.raises(ZeroDivisionError):
        f.resume()
    assert f.state is State.TERM
    assert get_this() is main


def test_reset_reuses_fiber():
    seen = []
    f = Fiber(lambda: seen.append("first"))
    f.resume()
    f.reset(lambda: seen.append("second"))
    assert f.state is State.READY
    f.resume()
    assert seen == ["first", "second"]
    assert f.state is State.TERM


def test_reset_requires_finished_fiber():
    f = Fiber(lambda: None)
    with pytest.raises(RuntimeError):
        f.reset(lambda: None)
    with pytest.raises(RuntimeError):
        get_this().reset(lambda: None)


def test_fiber_returning_to_scheduler_fiber():
    main = get_this()
    order = []

    def a_body():
        order.append("a1")
        get_this().yield_()
        order.append("a2")

    a = Fiber(a_body)

    def s_body():
        set_scheduler_fiber(get_this())
        a.resume()
        order.append("s1")
        a.resume()
        order.append("s2")

    s = Fiber(s_body, 0, False)
    try:
        s.resume()
    finally:
        set_scheduler_fiber(main)
    assert order == ["a1", "s1", "a2", "s2"]
    assert a.state is State.TERM
    assert s.state is State.TERM
    assert get_this() is main


def test_each_thread_has_own_main_fiber():
    main = get_this()
    result = {}

    def worker():
        result["before"] = get_fiber_id()
        other = get_this()
        result["main"] = other
        result["state"] = other.state
        result["after"] = get_fiber_id()

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert result["before"] is None
    assert result["main"] is not main
    assert result["main"].id > main.id
    assert result["after"] == result["main"].id
    assert result["state"] is State.RUNNING
    assert get_this() is main
    assert get_fiber_id() == main.id