"""工具函数模块

提供 URL 拼接、查询字符串渲染、请求头拆分、HTTP 日期格式化以及日志脱敏等实用功能
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from email.utils import format_datetime
from urllib.parse import parse_qs, quote, urlencode, urlsplit, urlunsplit

# 默认敏感请求头名称集合
DEFAULT_SENSITIVE_HEADERS = {
    "Authorization",
    "Proxy-Authorization",
    "Cookie",
    "X-API-Key",
    "X-Auth-Token",
    "X-Access-Token",
}

# 默认敏感URL参数名称集合
DEFAULT_SENSITIVE_PARAMS = {
    "token",
    "password",
    "secret",
    "key",
    "api_key",
    "access_token",
}

_ALLOWED_SCHEMES = ("http", "https")


def is_absolute_url(url: str | None) -> bool:
    """判断 URL 是否为带 http/https 协议和主机名的绝对地址"""
    if not url or any(ch.isspace() for ch in url):
        return False
    parts = urlsplit(url)
    return parts.scheme.lower() in _ALLOWED_SCHEMES and bool(parts.netloc)


def join_url(base_url: str, path: str) -> str:
    """
    将相对路径拼接到基础 URL 上

    无论两侧已有多少个斜杠，拼接结果中间都只保留一个分隔斜杠

    示例:
        >>> join_url("https://api.example.com/", "/widgets/1")
        "https://api.example.com/widgets/1"
    """
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def render_query_string(params: Mapping[str, object], encode: bool = False) -> str:
    """
    将键值对渲染为 key=value&key2=value2 形式的查询字符串

    参数:
        params: 查询参数字典，保持插入顺序
        encode: 是否对键和值进行百分号编码。默认不编码，保持原始拼接行为
    """
    if encode:
        return "&".join(f"{quote(str(k), safe='')}={quote(str(v), safe='')}" for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in params.items())


def replace_query(url: str, query: str) -> str:
    """用新的查询字符串整体替换 URL 中已有的查询字符串（不合并）"""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def split_header_tokens(values: Iterable[str]) -> list[str]:
    """
    将一个或多个逗号分隔的头部值拆分为去除空白的令牌列表

    示例:
        >>> split_header_tokens(["GET, POST", "PUT"])
        ["GET", "POST", "PUT"]
    """
    tokens = []
    for value in values:
        for token in value.split(","):
            token = token.strip()
            if token:
                tokens.append(token)
    return tokens


def format_http_date(value: datetime) -> str:
    """
    将时间格式化为 RFC 7231 HTTP-date（IMF-fixdate）

    不带时区信息的时间按 UTC 处理

    示例:
        >>> format_http_date(datetime(1994, 11, 6, 8, 49, 37, tzinfo=timezone.utc))
        "Sun, 06 Nov 1994 08:49:37 GMT"
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def generate_request_id(suffix=None) -> str:
    """生成全局唯一的请求 ID"""
    timestamp = int(time.time() * 1000)  # 毫秒级时间戳
    short_uuid = uuid.uuid4().hex[:8]
    if suffix is None:
        return f"REQ-{timestamp}-{short_uuid}"
    return f"REQ-{timestamp}-{short_uuid}-{suffix}"


def sanitize_headers(
    headers: Mapping[str, str],
    sensitive_keys: set[str] | None = None,
    mask: str = "***",
) -> dict[str, str]:
    """
    脱敏请求头中的敏感信息

    参数:
        headers: 原始请求头（字典或 HTTPHeaderDict）
        sensitive_keys: 敏感键名集合，不区分大小写。None 时使用默认集合
        mask: 脱敏后的替换字符串

    返回:
        脱敏后的请求头字典（新字典，不修改原字典）
    """
    if sensitive_keys is None:
        sensitive_keys = DEFAULT_SENSITIVE_HEADERS

    sensitive_keys_lower = {k.lower() for k in sensitive_keys}
    return {k: mask if k.lower() in sensitive_keys_lower else v for k, v in headers.items()}


def sanitize_url(
    url: str,
    sensitive_params: set[str] | None = None,
    mask: str = "***",
) -> str:
    """
    脱敏 URL 中的敏感查询参数

    示例:
        >>> sanitize_url("https://api.example.com/user?token=abc123&page=1")
        "https://api.example.com/user?token=%2A%2A%2A&page=1"
    """
    if sensitive_params is None:
        sensitive_params = DEFAULT_SENSITIVE_PARAMS

    parts = urlsplit(url)
    if not parts.query:
        return url

    sensitive_params_lower = {p.lower() for p in sensitive_params}
    params = parse_qs(parts.query, keep_blank_values=True)
    if not any(key.lower() in sensitive_params_lower for key in params):
        return url

    sanitized_params = {
        key: [mask] * len(values) if key.lower() in sensitive_params_lower else values
        for key, values in params.items()
    }
    return urlunsplit(parts._replace(query=urlencode(sanitized_params, doseq=True)))
