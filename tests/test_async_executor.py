"""
async_executor.py 模块的单元测试

测试用例:
- BaseAsyncExecutor 接口未实现
- ThreadPoolAsyncExecutor 懒创建线程池、submit 返回 Future
- execute 保持顺序并把异常放在对应位置
- shutdown 后可再次使用
"""

import time
from concurrent.futures import Future

import pytest

from condrequest.async_executor import BaseAsyncExecutor, ThreadPoolAsyncExecutor


class TestBaseAsyncExecutor:
    """测试 BaseAsyncExecutor 基类"""

    @pytest.mark.unit
    def test_initialization(self):
        executor = BaseAsyncExecutor(max_workers=5, thread_name_prefix="req")

        assert executor.max_workers == 5
        assert executor.executor_kwargs == {"thread_name_prefix": "req"}

    @pytest.mark.unit
    def test_methods_not_implemented(self):
        executor = BaseAsyncExecutor()

        with pytest.raises(NotImplementedError, match="submit"):
            executor.submit(print)
        with pytest.raises(NotImplementedError, match="execute"):
            executor.execute(print, [1])

        executor.shutdown()


class TestThreadPoolAsyncExecutor:
    """测试线程池异步执行器"""

    @pytest.mark.unit
    def test_pool_created_lazily(self):
        executor = ThreadPoolAsyncExecutor(max_workers=2)

        assert executor._executor is None
        future = executor.submit(lambda x: x * 2, 21)

        assert isinstance(future, Future)
        assert future.result(timeout=5) == 42
        executor.shutdown()
        assert executor._executor is None

    @pytest.mark.unit
    def test_execute_preserves_order(self):
        # Arrange
        executor = ThreadPoolAsyncExecutor(max_workers=4)

        def slow_identity(value):
            time.sleep(0.01 * (5 - value))
            return value

        # Act
        results = executor.execute(slow_identity, [1, 2, 3, 4])
        executor.shutdown()

        # Assert
        assert results == [1, 2, 3, 4]

    @pytest.mark.unit
    def test_execute_collects_exceptions_in_place(self):
        executor = ThreadPoolAsyncExecutor(max_workers=2)

        def maybe_fail(value):
            if value == 2:
                raise ValueError("bad item")
            return value

        results = executor.execute(maybe_fail, [1, 2, 3])
        executor.shutdown()

        assert results[0] == 1
        assert isinstance(results[1], ValueError)
        assert results[2] == 3

    @pytest.mark.unit
    def test_reusable_after_shutdown(self):
        executor = ThreadPoolAsyncExecutor(max_workers=1)
        executor.shutdown()

        assert executor.submit(lambda: "ok").result(timeout=5) == "ok"
        executor.shutdown()
