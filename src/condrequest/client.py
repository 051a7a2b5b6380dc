"""条件请求客户端模块

EnhancedClient 把各个组件组合成一个易用的门面：
- RequestBuilder 负责 URL 解析、前置条件和查询参数
- RequestsTransport 负责真正的网络收发（认证、重试、代理、证书校验）
- ExecutionPipeline 负责生命周期事件广播
- ResponseClassifier 负责状态码分类和期望校验
- cors.evaluate 负责 CORS 预检评估

配置方式与 requests 风格的客户端一致：类属性提供默认值，构造参数按实例覆盖。

使用示例:
    class WidgetClient(EnhancedClient):
        base_url = "https://api.example.com/v1"
        bearer_token = "secret"

    with WidgetClient() as client:
        outcome = client.get("/widgets/1", precondition=IfNoneMatch("abc123"))
        if outcome.classification is Classification.NOT_MODIFIED:
            ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import Future
from typing import Any

from requests.auth import AuthBase

from condrequest import cors
from condrequest.async_executor import BaseAsyncExecutor, ThreadPoolAsyncExecutor
from condrequest.auth import resolve_authentication
from condrequest.builder import RequestBuilder
from condrequest.classifier import ResponseClassifier
from condrequest.constants import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_POOL_CONFIG,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_CONFIG,
    DEFAULT_TIMEOUT,
    HEADER_AC_REQUEST_HEADERS,
    HEADER_AC_REQUEST_METHOD,
    HEADER_ORIGIN,
    HTTP_METHOD_DELETE,
    HTTP_METHOD_GET,
    HTTP_METHOD_HEAD,
    HTTP_METHOD_OPTIONS,
    HTTP_METHOD_PATCH,
    HTTP_METHOD_POST,
    HTTP_METHOD_PUT,
    STATUS_NOT_MODIFIED,
)
from condrequest.events import EventHandler
from condrequest.exceptions import APIClientResponseValidationError, APIClientValidationError
from condrequest.models import HeadersInput, PreflightResult, RequestBody, RequestDescriptor, ResponseOutcome
from condrequest.parser import BaseResponseParser, JSONResponseParser
from condrequest.pipeline import ErrorPredicate, ExecutionPipeline
from condrequest.preconditions import Precondition
from condrequest.serializer import BaseBodySerializer, FormBodySerializer, JSONBodySerializer
from condrequest.transport import BaseTransport, RequestsTransport
from condrequest.utils import DEFAULT_SENSITIVE_HEADERS, DEFAULT_SENSITIVE_PARAMS
from condrequest.validator import BaseResponseValidator

logger = logging.getLogger(__name__)


class EnhancedClient:
    """
    条件请求客户端

    类属性:
        base_url: 基础 URL，相对路径会拼接到它后面
        default_headers: 所有请求都会携带的默认请求头
        timeout: 请求超时时间（秒）
        verify: SSL 证书验证开关，False 表示跳过证书校验
        enable_retry / max_retries / retry_config / pool_config: 传输层重试与连接池配置
        max_workers: submit / execute_many 使用的线程池大小
        encode_query: 是否对查询参数进行百分号编码
        accept: Accept 头中 application/json 之外的内容类型
        user_agent / user_agent_version: User-Agent 产品名和版本
        proxies: 代理配置
        bearer_token / username / password / auth_scheme / auth_credentials: 认证配置，
            优先级为 Bearer > Basic > 自定义方案
        authentication_class: requests 认证类或实例，设置后忽略上面的认证配置
        transport_class: 传输层类或实例
        async_executor_class: 异步执行器类或实例
        body_serializer_class: 实体序列化器类或实例
        response_parser_class: 实体解析器类或实例
        error_predicate: 判断状态码是否触发 ErrorStatus 事件，None 使用默认规则
    """

    # ========== 基础配置 ==========
    base_url: str = ""
    default_headers: dict[str, str] = {}
    verify: bool = True
    encode_query: bool = False

    # ========== 超时、重试和并发配置 ==========
    timeout: int = DEFAULT_TIMEOUT
    enable_retry: bool = False
    max_retries: int = DEFAULT_RETRIES
    retry_config: dict[str, Any] = DEFAULT_RETRY_CONFIG
    pool_config: dict[str, Any] = DEFAULT_POOL_CONFIG
    max_workers: int = DEFAULT_MAX_WORKERS

    # ========== 默认请求头配置 ==========
    accept: list[str] = []
    user_agent: str | None = None
    user_agent_version: str | None = None
    proxies: dict[str, str] = {}

    # ========== 认证配置 ==========
    bearer_token: str | None = None
    username: str | None = None
    password: str | None = None
    auth_scheme: str | None = None
    auth_credentials: str | None = None
    authentication_class: type[AuthBase] | AuthBase | None = None

    # ========== 安全性配置 ==========
    enable_sanitization: bool = True
    sensitive_headers: set[str] = DEFAULT_SENSITIVE_HEADERS
    sensitive_params: set[str] = DEFAULT_SENSITIVE_PARAMS

    # ========== 可插拔组件配置 ==========
    transport_class: type[BaseTransport] | BaseTransport = RequestsTransport
    async_executor_class: type[BaseAsyncExecutor] | BaseAsyncExecutor = ThreadPoolAsyncExecutor
    body_serializer_class: type[BaseBodySerializer] | BaseBodySerializer = JSONBodySerializer
    response_parser_class: type[BaseResponseParser] | BaseResponseParser = JSONResponseParser
    error_predicate: ErrorPredicate | None = None

    def __init__(
        self,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        verify: bool | None = None,
        enable_retry: bool | None = None,
        max_retries: int | None = None,
        max_workers: int | None = None,
        retry_config: dict[str, Any] | None = None,
        pool_config: dict[str, Any] | None = None,
        encode_query: bool | None = None,
        proxies: dict[str, str] | None = None,
        accept: Iterable[str] | None = None,
        user_agent: str | None = None,
        user_agent_version: str | None = None,
        authentication: AuthBase | type[AuthBase] | None = None,
        transport: BaseTransport | type[BaseTransport] | None = None,
        executor: BaseAsyncExecutor | type[BaseAsyncExecutor] | None = None,
        body_serializer: BaseBodySerializer | type[BaseBodySerializer] | None = None,
        response_parser: BaseResponseParser | type[BaseResponseParser] | None = None,
        error_predicate: ErrorPredicate | None = None,
    ):
        """
        初始化客户端实例

        执行步骤:
            1. 合并类级别与实例级别的配置
            2. 创建请求构建器（校验 base_url）
            3. 解析认证并创建传输层
            4. 创建执行管道和响应分类器

        异常:
            UrlResolutionError: base_url 不是绝对 URL
            APIClientValidationError: 组件配置无效
        """
        # ========== 步骤1: 合并配置 ==========
        self.base_url = base_url if base_url is not None else self.base_url
        self.timeout = timeout if timeout is not None else self.timeout
        self.verify = verify if verify is not None else self.verify
        self.enable_retry = enable_retry if enable_retry is not None else self.enable_retry
        self.max_retries = max_retries if max_retries is not None else self.max_retries
        self.max_workers = max_workers if max_workers is not None else self.max_workers
        self.encode_query = encode_query if encode_query is not None else self.encode_query
        self.retry_config = {**self.retry_config, **(retry_config or {})}
        self.pool_config = {**self.pool_config, **(pool_config or {})}
        self.proxies = {**self.proxies, **(proxies or {})}
        self.accept = list(accept) if accept is not None else list(self.accept)
        self.user_agent = user_agent or self.user_agent
        self.user_agent_version = user_agent_version or self.user_agent_version
        self.session_headers = {**self.default_headers, **(headers or {})}

        # ========== 步骤2: 请求构建器 ==========
        self.builder = RequestBuilder(self.base_url, encode_query=self.encode_query)

        # ========== 步骤3: 认证和传输层 ==========
        self.auth_instance = self._resolve_authentication(authentication)
        self.transport = self._resolve_transport(transport)

        # ========== 步骤4: 管道、分类器和编解码组件 ==========
        self.body_serializer_instance = self._resolve_component(
            body_serializer, "body_serializer_class", BaseBodySerializer
        )
        self.response_parser_instance = self._resolve_component(
            response_parser, "response_parser_class", BaseResponseParser
        )
        self.pipeline = ExecutionPipeline(
            self.transport,
            error_predicate=error_predicate or self.error_predicate,
            executor=self._resolve_component(
                executor, "async_executor_class", BaseAsyncExecutor, max_workers=self.max_workers
            ),
            enable_sanitization=self.enable_sanitization,
            sensitive_headers=self.sensitive_headers,
            sensitive_params=self.sensitive_params,
        )
        self.classifier = ResponseClassifier()

    # ========== 组件解析 ==========

    def _resolve_component(self, component, class_attr_name, base_class, **init_kwargs):
        """
        统一的组件解析方法：优先使用传入配置，否则使用类属性；类会被实例化，实例原样返回

        异常:
            APIClientValidationError: 配置既不是 base_class 的子类也不是其实例
        """
        source = component if component is not None else getattr(self, class_attr_name, None)
        if source is None:
            return None

        if isinstance(source, type) and issubclass(source, base_class):
            return source(**init_kwargs)
        if isinstance(source, base_class):
            return source

        raise APIClientValidationError(f"{class_attr_name} must be a {base_class.__name__} subclass or instance")

    def _resolve_authentication(self, authentication) -> AuthBase | None:
        auth = self._resolve_component(authentication, "authentication_class", AuthBase)
        if auth is not None:
            return auth
        return resolve_authentication(
            bearer_token=self.bearer_token,
            username=self.username,
            password=self.password,
            custom_scheme=self.auth_scheme,
            custom_credentials=self.auth_credentials,
        )

    def _resolve_transport(self, transport) -> BaseTransport:
        source = transport if transport is not None else self.transport_class
        if isinstance(source, BaseTransport):
            return source
        if not (isinstance(source, type) and issubclass(source, BaseTransport)):
            raise APIClientValidationError("transport_class must be a BaseTransport subclass or instance")
        if not issubclass(source, RequestsTransport):
            return source()
        return source(
            headers=self.session_headers,
            timeout=self.timeout,
            verify=self.verify,
            authentication=self.auth_instance,
            enable_retry=self.enable_retry,
            max_retries=self.max_retries,
            retry_config=self.retry_config,
            pool_config=self.pool_config,
            proxies=self.proxies,
            accept=self.accept,
            user_agent=self.user_agent,
            user_agent_version=self.user_agent_version,
        )

    # ========== 生命周期监听器 ==========

    def on_request_sent(self, handler: EventHandler) -> EventHandler:
        return self.pipeline.on_request_sent(handler)

    def on_response_received(self, handler: EventHandler) -> EventHandler:
        return self.pipeline.on_response_received(handler)

    def on_not_modified(self, handler: EventHandler) -> EventHandler:
        return self.pipeline.on_not_modified(handler)

    def on_error_status(self, handler: EventHandler) -> EventHandler:
        return self.pipeline.on_error_status(handler)

    def remove_listener(self, event_name: str, handler: EventHandler) -> bool:
        return self.pipeline.remove_listener(event_name, handler)

    # ========== 构建与执行 ==========

    def encode_body(self, value: Any, body_serializer: BaseBodySerializer | None = None) -> RequestBody | None:
        """把实体值编码为 RequestBody，RequestBody 和 None 原样返回"""
        if value is None or isinstance(value, RequestBody):
            return value
        return (body_serializer or self.body_serializer_instance).encode(value)

    def build(
        self,
        method: str,
        url: str | None = None,
        *,
        precondition: Precondition | None = None,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: HeadersInput = None,
    ) -> RequestDescriptor:
        """构建请求描述符，非 RequestBody 的 body 会先经过实体序列化器编码"""
        return self.builder.build(
            method,
            url,
            precondition=precondition,
            body=self.encode_body(body),
            query_params=params,
            headers=headers,
        )

    def execute(self, descriptor: RequestDescriptor) -> ResponseOutcome:
        return self.pipeline.execute(descriptor)

    def submit(self, descriptor: RequestDescriptor) -> Future:
        return self.pipeline.submit(descriptor)

    def execute_many(
        self, descriptors: Sequence[RequestDescriptor], is_async: bool = False
    ) -> list[ResponseOutcome | Exception]:
        return self.pipeline.execute_many(descriptors, is_async=is_async)

    def request(
        self,
        method: str,
        url: str | None = None,
        *,
        precondition: Precondition | None = None,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: HeadersInput = None,
    ) -> ResponseOutcome:
        """
        构建并执行单个请求

        返回:
            原始 ResponseOutcome，不论状态码如何都不会抛出 HTTP 异常；需要时调用 expect_* 方法
        """
        descriptor = self.build(method, url, precondition=precondition, body=body, params=params, headers=headers)
        return self.execute(descriptor)

    def get(self, url: str | None = None, **kwargs) -> ResponseOutcome:
        return self.request(HTTP_METHOD_GET, url, **kwargs)

    def post(self, url: str | None = None, **kwargs) -> ResponseOutcome:
        return self.request(HTTP_METHOD_POST, url, **kwargs)

    def put(self, url: str | None = None, **kwargs) -> ResponseOutcome:
        return self.request(HTTP_METHOD_PUT, url, **kwargs)

    def patch(self, url: str | None = None, **kwargs) -> ResponseOutcome:
        return self.request(HTTP_METHOD_PATCH, url, **kwargs)

    def delete(self, url: str | None = None, **kwargs) -> ResponseOutcome:
        return self.request(HTTP_METHOD_DELETE, url, **kwargs)

    def options(self, url: str | None = None, **kwargs) -> ResponseOutcome:
        return self.request(HTTP_METHOD_OPTIONS, url, **kwargs)

    def head(self, url: str | None = None, **kwargs) -> ResponseOutcome:
        return self.request(HTTP_METHOD_HEAD, url, **kwargs)

    # ========== 实体辅助方法 ==========

    def send_entity(
        self,
        method: str,
        entity: Any,
        url: str | None = None,
        precondition: Precondition | None = None,
        body_serializer: BaseBodySerializer | None = None,
        headers: HeadersInput = None,
    ) -> ResponseOutcome:
        """
        编码实体并发送

        常用于乐观并发更新，例如 PUT 携带 IfMatch 前置条件

        异常:
            APIClientRequestValidationError: DRF 实体序列化器校验失败
        """
        body = self.encode_body(entity, body_serializer)
        return self.request(method, url, precondition=precondition, body=body, headers=headers)

    def get_entity(
        self,
        url: str | None = None,
        parser: BaseResponseParser | None = None,
        precondition: Precondition | None = None,
        params: Mapping[str, Any] | None = None,
        headers: HeadersInput = None,
    ) -> Any:
        """
        获取并解码实体

        返回:
            解码后的实体；响应为 304 时返回 None，表示调用方持有的副本仍然有效

        异常:
            UnexpectedStatusError: 响应不是 2xx
            PreconditionFailedError: 412 且请求携带前置条件
        """
        outcome = self.get(url, precondition=precondition, params=params, headers=headers)
        if outcome.status_code == STATUS_NOT_MODIFIED:
            logger.debug(f"Entity at {outcome.url} not modified")
            outcome.close()
            return None

        try:
            self.expect_success(outcome)
            return (parser or self.response_parser_instance).parse(outcome)
        finally:
            outcome.close()

    def get_entities(
        self,
        url: str | None = None,
        parser: BaseResponseParser | None = None,
        precondition: Precondition | None = None,
        params: Mapping[str, Any] | None = None,
        headers: HeadersInput = None,
    ) -> list[Any] | None:
        """
        获取并解码实体列表，空响应体返回空列表，304 返回 None

        异常:
            APIClientResponseValidationError: 解码结果不是列表
        """
        outcome = self.get(url, precondition=precondition, params=params, headers=headers)
        if outcome.status_code == STATUS_NOT_MODIFIED:
            outcome.close()
            return None

        try:
            self.expect_success(outcome)
            entities = (parser or self.response_parser_instance).parse(outcome)
        finally:
            outcome.close()

        if entities is None:
            return []
        if not isinstance(entities, list):
            raise APIClientResponseValidationError(
                f"Expected a list of entities from {outcome.url}, got {type(entities).__name__}",
                response=outcome,
                validation_result={"type": type(entities).__name__},
            )
        return entities

    def post_form(
        self, values: Mapping[str, Any], url: str | None = None, headers: HeadersInput = None
    ) -> ResponseOutcome:
        """以 application/x-www-form-urlencoded 格式提交表单"""
        return self.send_entity(HTTP_METHOD_POST, values, url, body_serializer=FormBodySerializer(), headers=headers)

    # ========== 方法发现与 CORS 预检 ==========

    def get_allowed_methods(self, url: str | None = None, headers: HeadersInput = None) -> list[str]:
        """
        通过 OPTIONS 请求获取允许的 HTTP 方法

        异常:
            MethodDiscoveryError: 远端对 OPTIONS 返回 405
        """
        outcome = self.options(url, headers=headers)
        try:
            return self.classifier.allowed_methods(outcome)
        finally:
            outcome.close()

    def cors_preflight(
        self,
        url: str | None,
        origin: str,
        method: str,
        request_headers: Iterable[str] = (),
    ) -> PreflightResult:
        """
        执行 CORS 预检请求并评估结果

        参数:
            url: 目标 URL
            origin: 发起请求的来源
            method: 后续请求将使用的方法；预检请求头中发送大写形式，评估时按原样区分大小写比较
            request_headers: 后续请求将携带的请求头名称

        异常:
            MethodDiscoveryError: 预检响应为 405
        """
        request_headers = [header for header in request_headers if header]
        preflight_headers = [(HEADER_ORIGIN, origin), (HEADER_AC_REQUEST_METHOD, method.upper())]
        if request_headers:
            preflight_headers.append((HEADER_AC_REQUEST_HEADERS, ", ".join(request_headers)))

        outcome = self.options(url, headers=preflight_headers)
        try:
            result = cors.evaluate(outcome, origin, method, request_headers)
        finally:
            outcome.close()
        logger.info(f"CORS preflight for {method} {outcome.url} from {origin}: allowed={result.allowed}")
        return result

    # ========== 响应分类 ==========

    def classify(
        self,
        outcome: ResponseOutcome,
        expectations: Iterable[BaseResponseValidator] | BaseResponseValidator | None = None,
    ) -> ResponseOutcome:
        return self.classifier.classify(outcome, expectations)

    def expect_success(self, outcome: ResponseOutcome) -> ResponseOutcome:
        return self.classifier.expect_success(outcome)

    def expect_status(self, outcome: ResponseOutcome, code: int) -> ResponseOutcome:
        return self.classifier.expect_status(outcome, code)

    def expect_status_in(self, outcome: ResponseOutcome, codes: Iterable[int]) -> ResponseOutcome:
        return self.classifier.expect_status_in(outcome, codes)

    # ========== 资源管理 ==========

    def close(self) -> None:
        """关闭执行器和传输层，释放连接池资源"""
        self.pipeline.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
