"""
condrequest 条件 HTTP 请求模块

提供条件请求（ETag / 修改时间前置条件）的构建、执行、响应分类和 CORS 预检评估

主要组件:
    - EnhancedClient: 客户端门面
    - 前置条件: IfMatch, IfNoneMatch, IfModifiedSince, IfUnmodifiedSince
    - RequestBuilder: 请求构建器
    - ExecutionPipeline: 带生命周期事件的执行管道
    - ResponseClassifier: 响应分类器
    - cors.evaluate: CORS 预检评估
    - 异常类: APIClientError 及其子类

DRF 实体校验位于 condrequest.drf，需要先完成 Django 配置，因此不在这里导出。

使用示例:
    >>> from condrequest import EnhancedClient, IfNoneMatch
    >>>
    >>> class WidgetClient(EnhancedClient):
    ...     base_url = "https://api.example.com"
    >>>
    >>> client = WidgetClient()
    >>> outcome = client.get("/widgets/1", precondition=IfNoneMatch("abc123"))
    >>> outcome.classification
    <Classification.NOT_MODIFIED: 'not_modified'>
"""

# 核心客户端
from condrequest.client import EnhancedClient

# 前置条件
from condrequest.preconditions import (
    IfMatch,
    IfModifiedSince,
    IfNoneMatch,
    IfUnmodifiedSince,
    Precondition,
)

# 构建、执行与分类
from condrequest.builder import RequestBuilder
from condrequest.pipeline import ExecutionPipeline, default_error_predicate
from condrequest.classifier import ResponseClassifier, classify_status
from condrequest.cors import evaluate as evaluate_preflight

# 数据模型
from condrequest.models import (
    Classification,
    PreflightResult,
    RequestBody,
    RequestDescriptor,
    ResponseOutcome,
)

# 生命周期事件
from condrequest.events import (
    ErrorStatus,
    EventDispatcher,
    NotModified,
    RequestSent,
    ResponseReceived,
)

# 传输层与认证
from condrequest.transport import BaseTransport, RequestsTransport
from condrequest.auth import BearerTokenAuth, SchemeAuth

# 序列化器与解析器
from condrequest.serializer import (
    BaseBodySerializer,
    BytesBodySerializer,
    FormBodySerializer,
    JSONBodySerializer,
)
from condrequest.parser import (
    BaseResponseParser,
    ContentResponseParser,
    JSONResponseParser,
    TextResponseParser,
)

# 异步执行器
from condrequest.async_executor import BaseAsyncExecutor, ThreadPoolAsyncExecutor

# 响应验证器
from condrequest.validator import BaseResponseValidator, StatusCodeValidator, SuccessValidator

# 异常类
from condrequest.exceptions import (
    APIClientError,
    APIClientHTTPError,
    APIClientNetworkError,
    APIClientRequestValidationError,
    APIClientResponseValidationError,
    APIClientTimeoutError,
    APIClientValidationError,
    BodyConsumedError,
    MethodDiscoveryError,
    PreconditionFailedError,
    UnexpectedStatusError,
    UrlResolutionError,
)

__all__ = [
    # 核心类
    "EnhancedClient",
    # 前置条件
    "IfMatch",
    "IfNoneMatch",
    "IfModifiedSince",
    "IfUnmodifiedSince",
    "Precondition",
    # 构建、执行与分类
    "RequestBuilder",
    "ExecutionPipeline",
    "default_error_predicate",
    "ResponseClassifier",
    "classify_status",
    "evaluate_preflight",
    # 数据模型
    "Classification",
    "PreflightResult",
    "RequestBody",
    "RequestDescriptor",
    "ResponseOutcome",
    # 事件
    "EventDispatcher",
    "RequestSent",
    "ResponseReceived",
    "NotModified",
    "ErrorStatus",
    # 传输层与认证
    "BaseTransport",
    "RequestsTransport",
    "BearerTokenAuth",
    "SchemeAuth",
    # 序列化器与解析器
    "BaseBodySerializer",
    "BytesBodySerializer",
    "JSONBodySerializer",
    "FormBodySerializer",
    "BaseResponseParser",
    "ContentResponseParser",
    "JSONResponseParser",
    "TextResponseParser",
    # 执行器
    "BaseAsyncExecutor",
    "ThreadPoolAsyncExecutor",
    # 验证器
    "BaseResponseValidator",
    "StatusCodeValidator",
    "SuccessValidator",
    # 异常
    "APIClientError",
    "APIClientValidationError",
    "UrlResolutionError",
    "APIClientNetworkError",
    "APIClientTimeoutError",
    "APIClientHTTPError",
    "UnexpectedStatusError",
    "PreconditionFailedError",
    "MethodDiscoveryError",
    "APIClientRequestValidationError",
    "APIClientResponseValidationError",
    "BodyConsumedError",
]

__version__ = "1.0.0"
