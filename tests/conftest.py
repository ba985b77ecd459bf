"""
Test Configuration
"""

import os
import tempfile
import threading

# 在导入应用之前切换到测试配置
_TEST_ROOT = tempfile.mkdtemp(prefix="excel-export-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT}/app.db"
os.environ["EXPORT_TEMP_PATH"] = os.path.join(_TEST_ROOT, "exports")
os.environ["LOG_FILE"] = ""
os.environ["PERFORMANCE_SETTLE_MS"] = "0"
os.environ["PERFORMANCE_CLEANUP_PAUSE_MS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import sessionmaker

from app.config.database import Base
from app.config.executors import get_export_executor, get_task_executor
from app.config.settings import settings
from app.core.cache import CacheManager
from app.core.executors import BoundedExecutor
from app.dependencies.cache import get_cache
from app.dependencies.database import get_session_factory
from app.main import app
from app.models.user import User
from app.services.export_cache_service import ExportTaskCacheService
from app.services.export_service import ExcelExportService
from app.services.export_task_store import ExportTaskStore
from app.services.performance_service import PerformanceService
from app.services.traditional_export_service import TraditionalExportService
from app.services.user_export_source import UserExportSource
from scripts.seed_data import build_user_rows


class FakeRedis:
    """进程内 Redis 替身，只实现缓存用到的命令"""

    def __init__(self):
        self.data = {}
        self.expires = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            return self.data.get(key)

    def set(self, key, value):
        with self._lock:
            self.data[key] = value
            self.expires.pop(key, None)
        return True

    def setex(self, key, seconds, value):
        with self._lock:
            self.data[key] = value
            self.expires[key] = seconds
        return True

    def delete(self, key):
        with self._lock:
            self.expires.pop(key, None)
            return 1 if self.data.pop(key, None) is not None else 0

    def ping(self):
        return True


@pytest.fixture
def engine(tmp_path):
    """每个测试独立的 SQLite 数据库"""
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache_manager(fake_redis):
    return CacheManager(fake_redis)


@pytest.fixture
def task_cache(cache_manager):
    return ExportTaskCacheService(cache_manager, ttl_seconds=1800)


@pytest.fixture
def store(session_factory):
    return ExportTaskStore(session_factory)


@pytest.fixture
def source(session_factory):
    return UserExportSource(session_factory)


@pytest.fixture
def export_settings(tmp_path):
    """导出配置：小批次、临时目录"""
    return settings.model_copy(update={
        "EXPORT_TEMP_PATH": str(tmp_path / "exports"),
        "EXPORT_BATCH_SIZE": 100,
        "EXPORT_MAX_CONCURRENT_TASKS": 5,
        "MEMORY_MONITOR_INTERVAL_MS": 10,
        "PERFORMANCE_SETTLE_MS": 0,
        "PERFORMANCE_CLEANUP_PAUSE_MS": 0,
    })


@pytest.fixture
def executor():
    pool = BoundedExecutor("TestExport-", max_workers=2, queue_capacity=10)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def task_executor():
    pool = BoundedExecutor("TestTask-", max_workers=2, queue_capacity=10)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def export_service(store, task_cache, source, executor, export_settings):
    return ExcelExportService(
        store=store,
        cache=task_cache,
        source=source,
        executor=executor,
        config=export_settings,
    )


@pytest.fixture
def traditional_service(source, export_settings):
    return TraditionalExportService(source, config=export_settings)


@pytest.fixture
def performance_service(export_service, traditional_service, source, task_executor, export_settings):
    return PerformanceService(
        export_service=export_service,
        traditional_service=traditional_service,
        source=source,
        executor=task_executor,
        config=export_settings,
    )


@pytest.fixture
def seed_users(session_factory):
    """插入用户数据，可覆盖部分字段"""
    def _seed(count, start=0, **overrides):
        rows = build_user_rows(count, start=start)
        for row in rows:
            row.update(overrides)
        with session_factory() as db:
            db.execute(insert(User), rows)
            db.commit()
        return rows
    return _seed


@pytest.fixture
def client(session_factory, cache_manager, executor, task_executor):
    """创建测试客户端"""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_cache] = lambda: cache_manager
    app.dependency_overrides[get_export_executor] = lambda: executor
    app.dependency_overrides[get_task_executor] = lambda: task_executor
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
