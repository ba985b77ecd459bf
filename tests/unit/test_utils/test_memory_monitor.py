"""
Test Memory Monitor
"""

import itertools
import threading
import time

from app.config.settings import settings
from app.utils.memory_monitor import MemoryMonitor, MemoryStats, manage_memory


class SequenceReader:
    """按顺序返回预设内存值，用完后保持最后一个值"""

    def __init__(self, values):
        self._values = iter(values)
        self._last = None
        self._lock = threading.Lock()
        self.calls = 0

    def __call__(self):
        with self._lock:
            self.calls += 1
            self._last = next(self._values, self._last)
            return self._last


def test_start_records_baseline_as_peak():
    """测试开始监控时基线即峰值"""
    monitor = MemoryMonitor("t1", interval_ms=1000, memory_reader=SequenceReader([100]))
    monitor.start_monitoring()
    try:
        stats = monitor.get_memory_stats()
        assert stats.start_memory == 100
        assert stats.peak_memory == 100
    finally:
        monitor.stop_monitoring()


def test_peak_tracks_maximum_sample():
    """测试峰值跟踪采样最大值，并在停止后冻结"""
    reader = SequenceReader([100, 300, 250, 120])
    monitor = MemoryMonitor("t2", interval_ms=5, memory_reader=reader)
    monitor.start_monitoring()
    deadline = time.time() + 2
    while reader.calls < 5 and time.time() < deadline:
        time.sleep(0.01)
    monitor.stop_monitoring()

    stats = monitor.get_memory_stats()
    assert stats.start_memory == 100
    assert stats.peak_memory == 300
    assert stats.current_memory == 120
    assert stats.memory_increase == 200
    assert stats.peak_memory >= stats.current_memory

    # 停止后再次查询不再采样
    calls = reader.calls
    assert monitor.get_memory_stats() == stats
    assert reader.calls == calls


def test_start_and_stop_are_idempotent():
    """测试重复开始/停止不会产生影响"""
    monitor = MemoryMonitor("t3", interval_ms=10, memory_reader=SequenceReader(itertools.repeat(50)))
    monitor.start_monitoring()
    thread = monitor._thread
    monitor.start_monitoring()
    assert monitor._thread is thread
    assert monitor.is_monitoring

    monitor.stop_monitoring()
    stats = monitor.get_memory_stats()
    monitor.stop_monitoring()
    assert not monitor.is_monitoring
    assert monitor.get_memory_stats() == stats


def test_sampling_thread_is_daemon():
    """测试采样线程不阻塞进程退出"""
    monitor = MemoryMonitor("t4", interval_ms=10, memory_reader=SequenceReader(itertools.repeat(1)))
    monitor.start_monitoring()
    try:
        assert monitor._thread.daemon
        assert monitor._thread.name == "MemoryMonitor-t4"
    finally:
        monitor.stop_monitoring()
    assert not monitor._thread.is_alive()


def test_sampling_survives_reader_errors():
    """测试采样异常不会终止监控"""
    values = iter([10, RuntimeError("boom"), 40])

    def reader():
        value = next(values, 40)
        if isinstance(value, Exception):
            raise value
        return value

    monitor = MemoryMonitor("t5", interval_ms=5, memory_reader=reader)
    monitor.start_monitoring()
    time.sleep(0.05)
    monitor.stop_monitoring()
    assert monitor.get_memory_stats().peak_memory == 40


def test_memory_stats_to_dict():
    """测试内存统计转换"""
    stats = MemoryStats(start_memory=10, peak_memory=30, current_memory=20)
    assert stats.to_dict() == {"start": 10, "peak": 30, "current": 20, "increase": 20}


def test_manage_memory_collects_above_high_watermark():
    """测试超过高水位触发回收"""
    result = manage_memory("m1", 1000, memory_reader=lambda: 80, memory_limit=100)
    assert result == "collected"


def test_manage_memory_warns_between_watermarks():
    """测试介于两个水位之间只告警"""
    result = manage_memory("m2", 1000, memory_reader=lambda: 65, memory_limit=100)
    assert result == "warned"


def test_manage_memory_normal_usage():
    """测试正常内存使用不做处理"""
    result = manage_memory("m3", 1000, memory_reader=lambda: 10, memory_limit=100)
    assert result == "normal"


def test_manage_memory_swallows_errors():
    """测试内存检查失败不抛出异常"""
    def broken_reader():
        raise OSError("无法读取内存")

    assert manage_memory("m4", 1000, memory_reader=broken_reader, memory_limit=100) == "error"


def test_manage_memory_uses_given_config():
    """测试水位线取自传入的配置"""
    config = settings.model_copy(update={
        "MEMORY_HIGH_WATERMARK": 0.3,
        "MEMORY_WARN_WATERMARK": 0.2,
        "MEMORY_GC_PAUSE_MS": 0,
        "MEMORY_LIMIT_BYTES": 100,
    })
    assert manage_memory("m5", 1000, memory_reader=lambda: 40, config=config) == "collected"
    assert manage_memory("m6", 1000, memory_reader=lambda: 25, config=config) == "warned"
    assert manage_memory("m7", 1000, memory_reader=lambda: 10, config=config) == "normal"


def test_concurrent_stats_reads_while_sampling():
    """测试采样过程中多线程读取统计数据，峰值始终不小于起始值与当前值"""
    counter = itertools.count(100)
    counter_lock = threading.Lock()

    def growing_reader():
        with counter_lock:
            return next(counter)

    monitor = MemoryMonitor("t6", interval_ms=1, memory_reader=growing_reader)
    monitor.start_monitoring()
    violations = []

    def read_stats():
        for _ in range(200):
            stats = monitor.get_memory_stats()
            if stats.peak_memory < stats.start_memory or stats.peak_memory < stats.current_memory:
                violations.append(stats)

    readers = [threading.Thread(target=read_stats) for _ in range(4)]
    try:
        for thread in readers:
            thread.start()
        for thread in readers:
            thread.join(timeout=10)
    finally:
        monitor.stop_monitoring()

    assert violations == []
    stats = monitor.get_memory_stats()
    assert stats.start_memory == 100
    assert stats.peak_memory >= stats.current_memory
    assert stats.peak_memory > stats.start_memory
