"""
HTTP 客户端常量配置模块

定义客户端使用的常量、请求头名称、默认配置等
"""

# HTTP 方法常量
HTTP_METHOD_GET = "GET"
HTTP_METHOD_POST = "POST"
HTTP_METHOD_PUT = "PUT"
HTTP_METHOD_DELETE = "DELETE"
HTTP_METHOD_PATCH = "PATCH"
HTTP_METHOD_HEAD = "HEAD"
HTTP_METHOD_OPTIONS = "OPTIONS"

# 请求构建器支持的 HTTP 方法集合
SUPPORTED_METHODS = frozenset(
    {
        HTTP_METHOD_GET,
        HTTP_METHOD_POST,
        HTTP_METHOD_PUT,
        HTTP_METHOD_DELETE,
        HTTP_METHOD_PATCH,
        HTTP_METHOD_HEAD,
        HTTP_METHOD_OPTIONS,
    }
)

# 条件请求头
HEADER_IF_MATCH = "If-Match"
HEADER_IF_NONE_MATCH = "If-None-Match"
HEADER_IF_MODIFIED_SINCE = "If-Modified-Since"
HEADER_IF_UNMODIFIED_SINCE = "If-Unmodified-Since"

# 通用请求/响应头
HEADER_ACCEPT = "Accept"
HEADER_ALLOW = "Allow"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_USER_AGENT = "User-Agent"

# CORS 预检相关请求头
HEADER_ORIGIN = "Origin"
HEADER_AC_REQUEST_METHOD = "Access-Control-Request-Method"
HEADER_AC_REQUEST_HEADERS = "Access-Control-Request-Headers"
HEADER_AC_ALLOW_METHODS = "Access-Control-Allow-Methods"
HEADER_AC_ALLOW_ORIGIN = "Access-Control-Allow-Origin"
HEADER_AC_ALLOW_HEADERS = "Access-Control-Allow-Headers"

# 认证方案
AUTH_SCHEME_BEARER = "Bearer"

# 内容类型
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"

# 状态码
STATUS_NOT_MODIFIED = 304
STATUS_METHOD_NOT_ALLOWED = 405
STATUS_PRECONDITION_FAILED = 412
MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 599

# 生命周期事件名称
EVENT_REQUEST_SENT = "request_sent"
EVENT_RESPONSE_RECEIVED = "response_received"
EVENT_NOT_MODIFIED = "not_modified"
EVENT_ERROR_STATUS = "error_status"

# 默认配置
DEFAULT_TIMEOUT = 30  # 默认超时时间（秒）
DEFAULT_RETRIES = 3  # 默认重试次数
DEFAULT_MAX_WORKERS = 10  # 默认最大工作线程数
DEFAULT_CHUNK_SIZE = 8192  # 默认分块大小（字节）

# 重试策略配置
RETRY_STATUS_FORCELIST = [429, 500, 502, 503, 504]  # 需要重试的 HTTP 状态码
RETRY_BACKOFF_FACTOR = 0.5  # 重试退避因子
RETRY_ALLOWED_METHODS = [
    HTTP_METHOD_HEAD,
    HTTP_METHOD_GET,
    HTTP_METHOD_PUT,
    HTTP_METHOD_DELETE,
    HTTP_METHOD_OPTIONS,
]

# 连接池配置
POOL_CONNECTIONS = 100  # 连接池大小
POOL_MAXSIZE = 100  # 连接池最大连接数

DEFAULT_RETRY_CONFIG = {
    "total": DEFAULT_RETRIES,  # 重试总次数
    "backoff_factor": RETRY_BACKOFF_FACTOR,  # 重试退避因子
    "status_forcelist": RETRY_STATUS_FORCELIST,  # 需要重试的状态码列表
    "allowed_methods": RETRY_ALLOWED_METHODS,  # 允许重试的HTTP方法
    "raise_on_status": False,  # 不在重试时抛出状态异常
}

DEFAULT_POOL_CONFIG = {
    "pool_connections": POOL_CONNECTIONS,  # 连接池大小
    "pool_maxsize": POOL_MAXSIZE,  # 连接池最大连接数
}
