"""
Streaming Excel Writer
流式 Excel 写入：基于 openpyxl 只写模式，按批追加行，不在内存中保留整个结果集
"""

import os
from typing import Any, Iterable, Optional, Sequence

from openpyxl import Workbook

from app.core.logging import logger


class StreamingExcelWriter:
    """单文件单 sheet 的流式写入器

    用法::

        with StreamingExcelWriter(path, headers, sheet_name) as writer:
            writer.write_batch(rows)
    """

    def __init__(self, file_path: str, headers: Sequence[str], sheet_name: str = "Sheet1"):
        self.file_path = file_path
        self.headers = list(headers)
        self.sheet_name = sheet_name
        self.rows_written = 0
        self._workbook: Optional[Workbook] = None
        self._sheet = None
        self._closed = False

    def open(self) -> "StreamingExcelWriter":
        """创建只写工作簿并写入表头"""
        if self._workbook is not None:
            return self
        self._workbook = Workbook(write_only=True)
        self._sheet = self._workbook.create_sheet(title=self.sheet_name)
        self._sheet.append(self.headers)
        logger.debug(f"打开导出文件: {self.file_path}, sheet: {self.sheet_name}")
        return self

    def write_batch(self, rows: Iterable[Sequence[Any]]) -> int:
        """追加一批数据行，返回写入行数"""
        if self._workbook is None or self._closed:
            raise RuntimeError("写入器未打开或已关闭")
        count = 0
        for row in rows:
            self._sheet.append(list(row))
            count += 1
        self.rows_written += count
        return count

    def close(self) -> None:
        """落盘并释放工作簿"""
        if self._closed or self._workbook is None:
            return
        try:
            self._workbook.save(self.file_path)
        finally:
            self._closed = True
            self._workbook = None
            self._sheet = None
        logger.debug(f"导出文件已保存: {self.file_path}, 数据行数: {self.rows_written}")

    def abort(self) -> None:
        """放弃写入，删除未完成的文件"""
        self._closed = True
        self._workbook = None
        self._sheet = None
        if os.path.exists(self.file_path):
            try:
                os.remove(self.file_path)
            except OSError as e:
                logger.warning(f"删除未完成的导出文件失败: {self.file_path}, error={e}")

    def __enter__(self) -> "StreamingExcelWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
