"""异步执行器模块

提供非阻塞的请求执行策略：单个请求以 Future 的形式提交，批量请求并发执行并保持原始顺序返回。
当前支持线程池执行方式。
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from collections.abc import Callable, Sequence
from typing import Any

from condrequest.constants import DEFAULT_MAX_WORKERS

logger = logging.getLogger(__name__)


class BaseAsyncExecutor:
    """
    异步执行器基类

    定义提交单个任务和批量执行任务的统一接口，子类需实现具体的执行策略

    参数:
        max_workers: 最大工作线程/进程数
        **kwargs: 其他传递给具体执行器的参数
    """

    def __init__(self, max_workers: int | None = None, **kwargs):
        self.max_workers = max_workers
        self.executor_kwargs = kwargs

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        """提交单个任务，立即返回 Future"""
        raise NotImplementedError("Subclasses must implement the 'submit' method.")

    def execute(self, fn: Callable[[Any], Any], items: Sequence[Any]) -> list[Any]:
        """
        并发执行多个任务

        参数:
            fn: 对每个元素执行的函数
            items: 任务参数列表

        返回:
            结果或异常对象的列表，顺序与输入一致
        """
        raise NotImplementedError("Subclasses must implement the 'execute' method.")

    def shutdown(self, wait: bool = True) -> None:
        """释放执行器资源"""


class ThreadPoolAsyncExecutor(BaseAsyncExecutor):
    """
    线程池异步执行器

    使用 ThreadPoolExecutor 实现并发请求执行，线程池在首次使用时创建，shutdown 时关闭。
    适用于 I/O 密集型任务。

    执行流程:
        1. 提交所有任务到线程池
        2. 并发执行，每个任务在独立线程中运行
        3. 收集结果，保持原始顺序返回
        4. 单个任务失败时把异常放在对应位置，不中断其余任务
    """

    def __init__(self, max_workers: int | None = None, **kwargs):
        super().__init__(max_workers=max_workers, **kwargs)
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers or DEFAULT_MAX_WORKERS, **self.executor_kwargs
                )
            return self._executor

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        return self._get_executor().submit(fn, *args, **kwargs)

    def execute(self, fn: Callable[[Any], Any], items: Sequence[Any]) -> list[Any]:
        logger.info(f"Starting {len(items)} asynchronous requests with {self.max_workers or DEFAULT_MAX_WORKERS} workers")

        future_to_index: dict[Future, int] = {self.submit(fn, item): index for index, item in enumerate(items)}

        results: dict[int, Any] = {}
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as e:
                logger.exception(f"Request #{index} failed: {e}")
                results[index] = e

        return [results[index] for index in range(len(items))]

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
