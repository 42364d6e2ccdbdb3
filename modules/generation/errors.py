"""Errors raised while talking to the generation backend."""

from __future__ import annotations

CANCELLED_MESSAGE = "请求已取消。"
MALFORMED_RESPONSE_MESSAGE = "服务器响应格式无效：缺少 images 列表。"


class GenerationError(RuntimeError):
    """Base error; ``str(exc)`` is the message shown to the user."""


class ServerError(GenerationError):
    """Backend answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"服务器错误：{status_code} {body}".rstrip())


class MalformedResponseError(GenerationError):
    """Backend answered 2xx but the payload is not the expected shape."""

    def __init__(self, message: str = MALFORMED_RESPONSE_MESSAGE) -> None:
        super().__init__(message)


class NetworkError(GenerationError):
    """Transport failure before any response arrived."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"网络错误：{detail}")
