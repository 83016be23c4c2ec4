import threading
import time

import pytest

from equicube.errors import PreconditionError
from equicube.parallel import ExecutionContext


def test_results_keep_task_order(context):
    tasks = [lambda i=i: i * i for i in range(20)]
    assert context.run_all(tasks) == [i * i for i in range(20)]


def test_empty_and_single_task(context):
    assert context.run_all([]) == []
    assert context.run_all([lambda: 'only']) == ['only']


def test_first_failure_is_raised(context):
    def boom():
        raise RuntimeError('chunk failed')

    tasks = [lambda: 1, boom, lambda: 3]
    with pytest.raises(RuntimeError, match='chunk failed'):
        context.run_all(tasks)
    # The context stays usable after a failed join
    assert context.run_all([lambda: 'a', lambda: 'b']) == ['a', 'b']


def test_failure_stops_the_join_while_a_worker_is_busy():
    slow_done = threading.Event()
    started = []

    def slow():
        time.sleep(0.3)
        slow_done.set()

    def fail():
        started.append('fail')
        raise RuntimeError('face failed')

    def late():
        started.append('late')

    with ExecutionContext(1) as ctx:
        begin = time.perf_counter()
        with pytest.raises(RuntimeError, match='face failed'):
            ctx.run_all([slow, fail, late, late])
        elapsed = time.perf_counter() - begin
        assert not slow_done.is_set()
        assert elapsed < 0.25
    assert started == ['fail']


def test_worker_failure_cancels_unstarted_tasks():
    failed = threading.Event()
    started = []

    def fail():
        failed.set()
        raise RuntimeError('chunk failed')

    def waiting():
        # Runs inline on the caller until the worker task has failed
        failed.wait(timeout=5)
        time.sleep(0.05)

    def late():
        started.append('late')

    with ExecutionContext(1) as ctx:
        with pytest.raises(RuntimeError, match='chunk failed'):
            ctx.run_all([fail, waiting, late, late])
    assert started == []


@pytest.mark.parametrize('workers', [1, 2, 6])
def test_nested_joins_do_not_deadlock(workers):
    with ExecutionContext(workers) as ctx:
        def outer(i):
            return sum(ctx.run_all([lambda j=j: i * 10 + j for j in range(8)]))

        results = ctx.run_all([lambda i=i: outer(i) for i in range(6)])
    assert results == [sum(i * 10 + j for j in range(8)) for i in range(6)]


def test_tasks_run_on_several_threads():
    barrier = threading.Barrier(2, timeout=10)
    seen = set()

    def task():
        seen.add(threading.get_ident())
        barrier.wait()

    with ExecutionContext(2) as ctx:
        ctx.run_all([task, task])
    assert len(seen) == 2


def test_default_worker_count_is_positive():
    with ExecutionContext() as ctx:
        assert ctx.workers >= 1


@pytest.mark.parametrize('workers', [0, -1, 1.5, True])
def test_invalid_worker_count(workers):
    with pytest.raises(PreconditionError):
        ExecutionContext(workers)


def test_independent_contexts_run_side_by_side():
    with ExecutionContext(2) as a, ExecutionContext(3) as b:
        assert a.run_all([lambda: 'a1', lambda: 'a2']) == ['a1', 'a2']
        assert b.run_all([lambda: 'b1', lambda: 'b2']) == ['b1', 'b2']
