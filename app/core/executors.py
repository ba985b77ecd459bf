"""
Bounded Executors
有界线程池：队列满时由提交者线程直接执行（调用者运行策略）
"""

import threading
from concurrent import futures
from typing import Any, Callable

from app.core.logging import logger


class BoundedExecutor:
    """有界线程池

    最多同时接纳 ``max_workers + queue_capacity`` 个任务（运行中 + 排队中）。
    超出容量时不丢弃也不无限排队，而是在提交者线程上同步执行，
    并返回一个已完成的 Future。
    """

    def __init__(self, name: str, max_workers: int, queue_capacity: int):
        if max_workers < 1:
            raise ValueError("max_workers 必须大于 0")
        if queue_capacity < 0:
            raise ValueError("queue_capacity 不能为负数")
        self.name = name
        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self._executor = futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=name,
        )
        self._slots = threading.BoundedSemaphore(max_workers + queue_capacity)
        self._caller_runs = 0
        self._lock = threading.Lock()

    @property
    def caller_runs_count(self) -> int:
        """因容量不足而在提交者线程执行的任务数"""
        with self._lock:
            return self._caller_runs

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> futures.Future:
        """提交任务"""
        if not self._slots.acquire(blocking=False):
            with self._lock:
                self._caller_runs += 1
            logger.warning(f"线程池 {self.name} 已满，任务由提交者线程直接执行")
            return self._run_on_caller(fn, *args, **kwargs)

        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except BaseException:
            self._slots.release()
            raise
        future.add_done_callback(lambda _f: self._slots.release())
        return future

    @staticmethod
    def _run_on_caller(fn: Callable[..., Any], *args, **kwargs) -> futures.Future:
        future: futures.Future = futures.Future()
        future.set_running_or_notify_cancel()
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        logger.info(f"关闭线程池 {self.name}, wait={wait}, cancel_pending={cancel_pending}")
        self._executor.shutdown(wait=wait, cancel_futures=cancel_pending)
