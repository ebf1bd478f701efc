"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层或 UI 层做统一捕获与用户提示。

流式推理相关的错误按“调用方该如何处理”分类：

- InvalidCredentialError: 配置问题，修好 token 之前重试没有意义。
- ModelWarmingUpError: 模型冷启动中，稍后重试即可。
- UpstreamError / EmptyBodyError / SilentModelError: 上游故障或退化输出。
- InferenceTimeoutError: 在超时窗口内没有拿到响应。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "UPSTREAM_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 model_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、连接被重置等。"""


class InferenceTimeoutError(NetworkError):
    """取消计时器在拿到响应头之前触发，或传输层读超时。"""

    def __init__(self, message: str = "Model response timed out", timeout: Optional[float] = None, **extra):
        super().__init__(code="TIMEOUT", message=message, http_status=504, timeout=timeout, **extra)
        self.timeout = timeout


class ApiError(BusinessError):
    """第三方 API 返回异常结果时抛出。"""


class UpstreamError(ApiError):
    """上游返回非 2xx 状态且不属于冷启动。"""

    def __init__(self, status: int, body: str, **extra):
        super().__init__(
            code="UPSTREAM_ERROR",
            message=f"Model error ({status}): {body}",
            http_status=status,
            **extra,
        )
        self.status = status
        self.body = body


class ModelWarmingUpError(ApiError):
    """模型正在加载（cold start），调用方应等待后重试。"""

    def __init__(self, body: str = "", status: int = 503, **extra):
        super().__init__(
            code="MODEL_WARMING_UP",
            message=(
                "The model is currently loading (cold start). Free inference endpoints "
                "unload idle models; wait about 30 seconds and try again."
            ),
            http_status=status,
            **extra,
        )
        self.status = status
        self.body = body


class EmptyBodyError(ApiError):
    """响应状态成功，但没有任何响应体。"""

    def __init__(self, **extra):
        super().__init__(code="EMPTY_BODY", message="Model returned an empty response body", http_status=502, **extra)


class SilentModelError(ApiError):
    """流正常结束，但没有解析出任何文本片段。"""

    def __init__(self, **extra):
        super().__init__(
            code="SILENT_MODEL",
            message="Model connected but produced no text; it may not be fully trained yet",
            http_status=502,
            **extra,
        )


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class InvalidCredentialError(ValidationError):
    """访问令牌缺失或格式不对，不会发起任何网络请求。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="INVALID_CREDENTIAL", message=message, http_status=401, **extra)
