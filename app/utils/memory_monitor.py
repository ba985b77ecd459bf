"""
Memory Monitor
内存监控器：后台线程周期采样进程内存，记录起始/峰值/当前值
"""

import gc
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import psutil

from app.config.settings import Settings, settings
from app.core.logging import logger

MB = 1024 * 1024

MemoryReader = Callable[[], int]


def read_process_memory() -> int:
    """读取当前进程常驻内存（字节）"""
    return psutil.Process().memory_info().rss


def get_memory_limit(config: Optional[Settings] = None) -> int:
    """进程可用内存上限（字节）：优先取配置，否则取物理内存总量"""
    config = config or settings
    if config.MEMORY_LIMIT_BYTES:
        return config.MEMORY_LIMIT_BYTES
    return psutil.virtual_memory().total


@dataclass(frozen=True)
class MemoryStats:
    """内存统计数据（字节）"""
    start_memory: int
    peak_memory: int
    current_memory: int

    @property
    def memory_increase(self) -> int:
        return self.peak_memory - self.start_memory

    @property
    def start_memory_mb(self) -> float:
        return self.start_memory / MB

    @property
    def peak_memory_mb(self) -> float:
        return self.peak_memory / MB

    @property
    def current_memory_mb(self) -> float:
        return self.current_memory / MB

    @property
    def memory_increase_mb(self) -> float:
        return self.memory_increase / MB

    def to_dict(self) -> dict:
        return {
            "start": self.start_memory,
            "peak": self.peak_memory,
            "current": self.current_memory,
            "increase": self.memory_increase,
        }


class MemoryMonitor:
    """内存监控器

    每个导出任务创建一个实例，任务结束后丢弃。
    start/stop 都是幂等的：重复调用不会产生任何效果。
    """

    def __init__(
        self,
        task_id: str,
        interval_ms: int = 100,
        memory_reader: Optional[MemoryReader] = None,
    ):
        self.task_id = task_id
        self.interval_ms = interval_ms
        self._read_memory = memory_reader or read_process_memory
        self._state_lock = threading.Lock()
        self._peak_lock = threading.Lock()
        self._monitoring = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._start_memory = 0
        self._peak_memory = 0
        self._final_memory: Optional[int] = None

    @property
    def is_monitoring(self) -> bool:
        with self._state_lock:
            return self._monitoring

    def _compare_and_set_running(self, expected: bool, new: bool) -> bool:
        with self._state_lock:
            if self._monitoring != expected:
                return False
            self._monitoring = new
            return True

    def _compare_and_set_peak(self, expected: int, new: int) -> bool:
        with self._peak_lock:
            if self._peak_memory != expected:
                return False
            self._peak_memory = new
            return True

    def _get_peak(self) -> int:
        with self._peak_lock:
            return self._peak_memory

    def start_monitoring(self) -> None:
        """开始监控内存使用情况"""
        if not self._compare_and_set_running(False, True):
            return

        current = self._read_memory()
        with self._peak_lock:
            self._start_memory = current
            self._peak_memory = current
        self._final_memory = None
        self._stop_event.clear()

        logger.info(f"任务 {self.task_id} 开始内存监控，初始内存使用: {current / MB:.2f} MB")

        self._thread = threading.Thread(
            target=self._monitor_memory_usage,
            name=f"MemoryMonitor-{self.task_id}",
            daemon=True,
        )
        self._thread.start()

    def stop_monitoring(self) -> None:
        """停止监控"""
        if not self._compare_and_set_running(True, False):
            return

        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(self.interval_ms / 1000.0 * 2, 1.0))

        end_memory = self._read_memory()
        self._update_peak(end_memory)
        self._final_memory = end_memory
        stats = self.get_memory_stats()

        logger.info(
            f"任务 {self.task_id} 内存监控结束 - 开始: {stats.start_memory_mb:.2f} MB, "
            f"峰值: {stats.peak_memory_mb:.2f} MB, 结束: {end_memory / MB:.2f} MB, "
            f"峰值增长: {stats.memory_increase_mb:.2f} MB"
        )

    def _update_peak(self, current: int) -> None:
        peak = self._get_peak()
        while current > peak:
            if self._compare_and_set_peak(peak, current):
                logger.debug(f"任务 {self.task_id} 内存峰值更新: {current / MB:.2f} MB")
                break
            peak = self._get_peak()

    def _monitor_memory_usage(self) -> None:
        """内存监控循环"""
        interval = self.interval_ms / 1000.0
        while not self._stop_event.is_set():
            try:
                self._update_peak(self._read_memory())
            except Exception as e:
                logger.warning(f"任务 {self.task_id} 内存监控过程中发生异常: {e}")
            if self._stop_event.wait(interval):
                break

    def get_memory_stats(self) -> MemoryStats:
        """获取内存使用统计"""
        if self._final_memory is not None and not self.is_monitoring:
            current = self._final_memory
        else:
            current = self._read_memory()
            self._update_peak(current)
        with self._peak_lock:
            return MemoryStats(
                start_memory=self._start_memory,
                peak_memory=self._peak_memory,
                current_memory=current,
            )


def manage_memory(
    task_id: str,
    processed_count: int,
    memory_reader: Optional[MemoryReader] = None,
    memory_limit: Optional[int] = None,
    config: Optional[Settings] = None,
) -> str:
    """根据内存使用率决定是否触发回收

    Returns:
        "collected" 触发了回收；"warned" 仅告警；"normal" 无需处理；"error" 检查失败
    """
    config = config or settings
    try:
        read_memory = memory_reader or read_process_memory
        limit = memory_limit or get_memory_limit(config)
        used = read_memory()
        usage = used / limit

        logger.debug(f"任务 {task_id} 处理 {processed_count} 条记录，当前内存使用率: {usage * 100:.2f}%")

        if usage > config.MEMORY_HIGH_WATERMARK:
            started = time.monotonic()
            gc.collect()
            time.sleep(config.MEMORY_GC_PAUSE_MS / 1000.0)
            after = read_memory()
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(
                f"任务 {task_id} 触发GC完成，释放内存: {(used - after) / MB:.2f} MB，"
                f"耗时: {elapsed_ms:.0f} ms，内存使用率从 {usage * 100:.2f}% 降至 {after / limit * 100:.2f}%"
            )
            return "collected"

        if usage > config.MEMORY_WARN_WATERMARK:
            logger.warning(f"任务 {task_id} 内存使用率较高: {usage * 100:.2f}%，建议关注")
            return "warned"

        return "normal"
    except Exception as e:
        logger.error(f"任务 {task_id} 内存管理过程中发生异常: {e}", exc_info=True)
        return "error"
