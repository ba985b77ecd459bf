"""
Test Export Task Store
"""

from datetime import datetime, timedelta

import pytest

from app.models.export_task import ExportTask


def _new_task(task_id, status="PENDING", create_by="system", create_time=None, total_count=1000):
    return ExportTask(
        task_id=task_id,
        task_name="用户数据导出",
        export_type="USER",
        status=status,
        total_count=total_count,
        processed_count=0,
        progress=0.0,
        create_by=create_by,
        create_time=create_time,
    )


def test_create_and_get(store):
    """测试创建并查询任务"""
    store.create(_new_task("a1"))
    task = store.get_by_task_id("a1")
    assert task is not None
    assert task.status == "PENDING"
    assert task.total_count == 1000
    assert task.create_time is not None
    assert store.get_by_task_id("missing") is None


def test_forward_transitions(store):
    """测试状态只能前向迁移"""
    store.create(_new_task("a2"))
    assert store.update_status("a2", "PROCESSING") is True
    assert store.update_status("a2", "PROCESSING") is False
    assert store.update_status("a2", "SUCCESS") is True

    task = store.get_by_task_id("a2")
    assert task.status == "SUCCESS"
    assert task.end_time is not None

    # 终态不可离开，重复写入终态为空操作
    assert store.update_status("a2", "SUCCESS") is False
    assert store.update_status("a2", "FAILED", "迟到的失败") is False
    task = store.get_by_task_id("a2")
    assert task.status == "SUCCESS"
    assert task.error_message is None


def test_pending_can_fail_directly(store):
    """测试 PENDING 可直接失败并记录错误信息"""
    store.create(_new_task("a3"))
    assert store.update_status("a3", "FAILED", "目录创建失败") is True
    task = store.get_by_task_id("a3")
    assert task.status == "FAILED"
    assert task.error_message == "目录创建失败"


def test_pending_cannot_succeed_directly(store):
    """测试 PENDING 不能直接成功"""
    store.create(_new_task("a4"))
    assert store.update_status("a4", "SUCCESS") is False
    assert store.get_by_task_id("a4").status == "PENDING"


def test_unknown_status_rejected(store):
    """测试不支持的目标状态"""
    store.create(_new_task("a5"))
    with pytest.raises(ValueError):
        store.update_status("a5", "PENDING")


def test_progress_is_monotonic(store):
    """测试已处理数量只增不减"""
    store.create(_new_task("a6"))
    store.update_status("a6", "PROCESSING")
    assert store.update_progress("a6", 500, 50.0) is True
    assert store.update_progress("a6", 300, 30.0) is False

    task = store.get_by_task_id("a6")
    assert task.processed_count == 500
    assert task.progress == 50.0


def test_progress_ignored_after_terminal(store):
    """测试终态后不再更新进度"""
    store.create(_new_task("a7"))
    store.update_status("a7", "PROCESSING")
    store.update_status("a7", "FAILED", "失败")
    assert store.update_progress("a7", 100, 10.0) is False


def test_update_file_info(store):
    """测试更新文件信息"""
    store.create(_new_task("a8"))
    assert store.update_file_info("a8", "/tmp/x/a.xlsx", "a.xlsx", 2048) is True
    task = store.get_by_task_id("a8")
    assert (task.file_path, task.file_name, task.file_size) == ("/tmp/x/a.xlsx", "a.xlsx", 2048)


def test_count_processing_tasks(store):
    """测试统计处理中的任务"""
    store.create(_new_task("b1", status="PROCESSING"))
    store.create(_new_task("b2", status="PROCESSING"))
    store.create(_new_task("b3"))
    store.create(_new_task("b4", status="SUCCESS"))
    assert store.count_processing_tasks() == 2


def test_list_by_creator_latest_first(store):
    """测试按创建人查询，最新的在前"""
    base = datetime(2024, 1, 1, 12, 0, 0)
    for i in range(5):
        store.create(_new_task(f"c{i}", create_by="alice", create_time=base + timedelta(minutes=i)))
    store.create(_new_task("d1", create_by="bob", create_time=base))

    tasks = store.list_by_creator("alice", 3)
    assert [t.task_id for t in tasks] == ["c4", "c3", "c2"]
    assert [t.task_id for t in store.list_by_creator("bob", 10)] == ["d1"]
    assert store.list_by_creator("nobody", 10) == []
