"""执行管道模块

负责把 RequestDescriptor 交给传输层发送，并在固定的生命周期节点上广播事件:

    RequestSent -> [transport.send] -> ResponseReceived -> NotModified(304) -> ErrorStatus

要点:
    - 事件按注册顺序同步广播，监听器异常不捕获，会直接中止本次请求
    - 每次执行恰好调用一次传输层：不重试、不自行跟随重定向、不设置自己的超时
    - 传输层异常原样传播，且不会为没有到达的响应广播 ResponseReceived
    - submit 返回 Future，取消是建议性的：尚未开始的任务不会广播任何事件
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future

from condrequest.async_executor import BaseAsyncExecutor, ThreadPoolAsyncExecutor
from condrequest.classifier import classify_status
from condrequest.constants import (
    DEFAULT_MAX_WORKERS,
    EVENT_ERROR_STATUS,
    EVENT_NOT_MODIFIED,
    EVENT_REQUEST_SENT,
    EVENT_RESPONSE_RECEIVED,
    HEADER_CONTENT_TYPE,
    STATUS_NOT_MODIFIED,
)
from condrequest.events import (
    ErrorStatus,
    EventDispatcher,
    EventHandler,
    NotModified,
    RequestSent,
    ResponseReceived,
)
from condrequest.exceptions import APIClientError, APIClientValidationError
from condrequest.models import RequestDescriptor, ResponseOutcome
from condrequest.transport import BaseTransport
from condrequest.utils import generate_request_id, sanitize_headers, sanitize_url

logger = logging.getLogger(__name__)

ErrorPredicate = Callable[[int], bool]


def default_error_predicate(status_code: int) -> bool:
    """非 2xx 且不是 304 的状态视为错误"""
    return not 200 <= status_code < 300 and status_code != STATUS_NOT_MODIFIED


class ExecutionPipeline:
    """
    请求执行管道

    参数:
        transport: 传输层协作者
        dispatcher: 事件分发器，None 时创建新的分发器
        error_predicate: 判断状态码是否触发 ErrorStatus 的函数
        executor: 异步执行器，None 时使用线程池执行器
        max_workers: 默认线程池执行器的最大工作线程数
        enable_sanitization: 日志中是否脱敏 URL 和请求头
        sensitive_headers: 敏感请求头名称集合
        sensitive_params: 敏感 URL 参数名称集合
    """

    def __init__(
        self,
        transport: BaseTransport,
        dispatcher: EventDispatcher | None = None,
        error_predicate: ErrorPredicate | None = None,
        executor: BaseAsyncExecutor | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        enable_sanitization: bool = True,
        sensitive_headers: set[str] | None = None,
        sensitive_params: set[str] | None = None,
    ):
        self.transport = transport
        self.dispatcher = dispatcher or EventDispatcher()
        self.error_predicate = error_predicate or default_error_predicate
        self.executor = executor or ThreadPoolAsyncExecutor(max_workers=max_workers)
        self.enable_sanitization = enable_sanitization
        self.sensitive_headers = sensitive_headers
        self.sensitive_params = sensitive_params

    # ========== 监听器注册 ==========

    def on_request_sent(self, handler: EventHandler) -> EventHandler:
        return self.dispatcher.register(EVENT_REQUEST_SENT, handler)

    def on_response_received(self, handler: EventHandler) -> EventHandler:
        return self.dispatcher.register(EVENT_RESPONSE_RECEIVED, handler)

    def on_not_modified(self, handler: EventHandler) -> EventHandler:
        return self.dispatcher.register(EVENT_NOT_MODIFIED, handler)

    def on_error_status(self, handler: EventHandler) -> EventHandler:
        return self.dispatcher.register(EVENT_ERROR_STATUS, handler)

    def remove_listener(self, event_name: str, handler: EventHandler) -> bool:
        return self.dispatcher.unregister(event_name, handler)

    # ========== 执行 ==========

    def _log_request(self, request_id: str, descriptor: RequestDescriptor) -> None:
        url = sanitize_url(descriptor.url, self.sensitive_params) if self.enable_sanitization else descriptor.url
        logger.info(f"[{request_id}] Starting {descriptor.method} request to {url}")
        if logger.isEnabledFor(logging.DEBUG):
            headers = descriptor.headers
            if self.enable_sanitization:
                headers = sanitize_headers(headers, self.sensitive_headers)
            logger.debug(f"[{request_id}] Request headers: {dict(headers)}")

    def execute(self, descriptor: RequestDescriptor) -> ResponseOutcome:
        """
        执行单个请求

        执行步骤:
            1. 广播 RequestSent
            2. 调用传输层发送请求（唯一的等待点）
            3. 广播 ResponseReceived（只要传输层返回响应就会触发）
            4. 计算分类并构建 ResponseOutcome，304 时广播 NotModified，错误状态时广播 ErrorStatus

        异常:
            传输层异常与监听器异常均原样传播
            APIClientValidationError: 状态码不在 100-599 范围内（响应会被关闭）
        """
        request_id = generate_request_id()
        self._log_request(request_id, descriptor)

        self.dispatcher.emit(
            EVENT_REQUEST_SENT,
            RequestSent(method=descriptor.method, url=descriptor.url, content_type=descriptor.content_type),
        )

        try:
            response = self.transport.send(descriptor)
        except APIClientError as e:
            logger.error(f"[{request_id}] Request failed: {e}")
            raise

        self.dispatcher.emit(
            EVENT_RESPONSE_RECEIVED,
            ResponseReceived(
                url=descriptor.url,
                status_code=response.status_code,
                content_type=response.headers.get(HEADER_CONTENT_TYPE),
            ),
        )

        try:
            classification = classify_status(response.status_code, descriptor.precondition is not None)
        except APIClientValidationError as e:
            logger.error(f"[{request_id}] Unclassifiable response: {e}")
            response.close()
            raise

        outcome = ResponseOutcome.from_response(response, descriptor, classification)
        logger.info(f"[{request_id}] Received {outcome.status_code} response ({classification.value})")
        logger.debug(f"[{request_id}] Response headers: {outcome.header_items}")

        self._emit_status_events(descriptor, outcome)
        return outcome

    def _emit_status_events(self, descriptor: RequestDescriptor, outcome: ResponseOutcome) -> None:
        if outcome.status_code == STATUS_NOT_MODIFIED:
            self.dispatcher.emit(EVENT_NOT_MODIFIED, NotModified(method=descriptor.method, url=descriptor.url))

        if self.error_predicate(outcome.status_code):
            self.dispatcher.emit(
                EVENT_ERROR_STATUS,
                ErrorStatus(
                    method=descriptor.method,
                    url=descriptor.url,
                    status_code=outcome.status_code,
                    reason=outcome.reason,
                    content_type=outcome.content_type,
                ),
            )

    def submit(self, descriptor: RequestDescriptor) -> Future:
        """非阻塞地提交请求，返回 Future[ResponseOutcome]"""
        return self.executor.submit(self.execute, descriptor)

    def execute_many(
        self, descriptors: Sequence[RequestDescriptor], is_async: bool = False
    ) -> list[ResponseOutcome | Exception]:
        """
        执行多个请求

        参数:
            descriptors: 请求描述符列表
            is_async: 是否使用异步执行器并发执行

        返回:
            响应结果或异常对象的列表，顺序与输入一致
        """
        if not descriptors:
            logger.warning("Empty request list provided")
            return []

        if is_async:
            return self.executor.execute(self.execute, list(descriptors))

        logger.info(f"Starting {len(descriptors)} synchronous requests")
        results: list[ResponseOutcome | Exception] = []
        for descriptor in descriptors:
            try:
                results.append(self.execute(descriptor))
            except Exception as e:
                logger.exception(f"Request to {descriptor.url} failed: {e}")
                results.append(e)
        return results

    def close(self) -> None:
        self.executor.shutdown()
        self.transport.close()
