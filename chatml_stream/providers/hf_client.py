"""Hugging Face 流式推理客户端。

本模块负责：

1. 校验访问令牌（缺失或前缀不对时直接失败，不发请求）。
2. 用 ChatML 拼接 prompt，构造 TGI 流式请求体。
3. 发起可取消的流式 HTTP 调用：计时器只约束“拿到响应头”之前的阶段，
   响应头一到立即解除。
4. 逐块增量解码 `data:` 事件，提取 token.text，回调 on_fragment 并累积全文。
5. 把所有失败归类为 domain.exceptions 中的具体异常。

客户端本身不保存任何跨调用的可变状态（每次调用新建 httpx.AsyncClient，
状态都在 RequestState 中），同一个实例可以被多个并发调用安全复用。
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import uuid4

import httpx

from chatml_stream.domain.exceptions import (
    BusinessError,
    EmptyBodyError,
    InferenceTimeoutError,
    InvalidCredentialError,
    ModelWarmingUpError,
    NetworkError,
    SilentModelError,
    UpstreamError,
)
from chatml_stream.domain.models import Message
from chatml_stream.infrastructure.logging.logger import logger
from chatml_stream.prompts.chatml import format_chatml
from chatml_stream.providers.registry import InferenceConfig
from chatml_stream.providers.sse import parse_event_line


FragmentCallback = Callable[[str], None]
MalformedLineHook = Callable[[str], None]


@dataclass
class RequestState:
    """单次调用的临时状态，调用开始时创建，结束时丢弃。

    timer_handle 在任何退出路径上都会经过 disarm()；disarm 是幂等的，
    timer_clears 记录真正取消计时器的次数。
    """

    timer_handle: Optional[asyncio.TimerHandle] = None
    task: Optional["asyncio.Task[Any]"] = None
    aborted: bool = False
    parts: List[str] = field(default_factory=list)
    fragment_count: int = 0
    malformed_count: int = 0
    bytes_received: int = 0
    timer_clears: int = 0

    def arm(self, timeout: float) -> None:
        """在当前任务上挂一个取消计时器。"""

        self.task = asyncio.current_task()
        self.timer_handle = asyncio.get_running_loop().call_later(timeout, self._abort)

    def disarm(self) -> bool:
        if self.timer_handle is None:
            return False
        self.timer_handle.cancel()
        self.timer_handle = None
        self.timer_clears += 1
        return True

    def _abort(self) -> None:
        # 只在下一个 await 点生效，不会打断正在处理的块
        self.aborted = True
        if self.task is not None:
            self.task.cancel()

    @property
    def output(self) -> str:
        return "".join(self.parts)


class HuggingFaceStreamClient:
    """TGI 流式推理客户端。

    - name: Provider 名称（供日志/调试使用）。
    - stream_response: 对外统一调用入口，返回完整的生成文本。
    """

    name = "huggingface"

    def __init__(
        self,
        config: InferenceConfig,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_malformed: Optional[MalformedLineHook] = None,
    ):
        # token 为 None 时每次调用从环境变量读取
        self._config = config
        self._token = token
        self._transport = transport
        self._on_malformed = on_malformed

    @property
    def config(self) -> InferenceConfig:
        return self._config

    async def stream_response(
        self,
        model_id: Optional[str],
        history: Sequence[Message],
        on_fragment: Optional[FragmentCallback],
    ) -> str:
        """执行一次流式生成，返回拼接后的全文。

        on_fragment 在解码循环中被同步调用，应当足够快、不阻塞，
        否则会拖慢后续块的处理。它抛出的异常会原样向上传播。

        Raises:
            InvalidCredentialError: 令牌缺失或格式不对（不发请求）。
            ModelWarmingUpError: 模型冷启动中。
            UpstreamError: 其他非 2xx 响应。
            EmptyBodyError: 2xx 但没有响应体。
            SilentModelError: 流结束但没有任何文本片段。
            InferenceTimeoutError: 超时窗口内没有拿到响应。
            NetworkError: 其他传输层错误。
        """

        token = self._resolve_token()
        model = model_id or self._config.model_id
        prompt = format_chatml(self._config.system_instruction, history)
        payload = self.build_payload(prompt)
        state = self._new_state()
        log_ctx: Dict[str, Any] = {
            "request_id": f"req-{uuid4().hex[:12]}",
            "provider": self.name,
            "model_id": model,
        }
        started = time.monotonic()
        self._log(
            logging.INFO,
            "Stream request started",
            log_ctx,
            messages=len(history),
            prompt_chars=len(prompt),
        )

        try:
            await self._run(self.stream_url(model), token, payload, state, on_fragment, log_ctx)
        except asyncio.CancelledError:
            if not state.aborted:
                raise
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            self._log(logging.WARNING, "Stream request timed out", log_ctx, timeout=self._config.timeout)
            raise InferenceTimeoutError(
                message="Timed out: the model is responding too slowly or is stuck",
                timeout=self._config.timeout,
                model_id=model,
            ) from None
        except httpx.TimeoutException as e:
            self._log(logging.WARNING, "Transport timeout", log_ctx, error=str(e))
            raise InferenceTimeoutError(message=str(e) or "Transport timeout", model_id=model) from e
        except httpx.RequestError as e:
            self._log(logging.WARNING, "Network error", log_ctx, error=str(e))
            raise NetworkError(code="NETWORK_ERROR", message=str(e), model_id=model) from e
        except BusinessError as e:
            self._log(logging.WARNING, "Stream request failed", log_ctx, code=e.code, http_status=e.http_status)
            raise
        finally:
            state.disarm()

        self._log(
            logging.INFO,
            "Stream request completed",
            log_ctx,
            fragments=state.fragment_count,
            chars=len(state.output),
            malformed_lines=state.malformed_count,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return state.output

    # ---- 请求构造 ----

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "inputs": prompt,
            "parameters": self._config.params.to_payload(),
            "stream": True,
        }

    def stream_url(self, model_id: Optional[str] = None) -> str:
        return self._config.stream_url(model_id)

    def _resolve_token(self) -> str:
        env_name = self._config.token_env
        prefix = self._config.token_prefix
        token = self._token if self._token is not None else os.getenv(env_name)
        token = (token or "").strip()
        if not token:
            raise InvalidCredentialError(
                f"{env_name} is not set; export a Hugging Face access token (it starts with '{prefix}')",
                env=env_name,
            )
        if not token.startswith(prefix):
            raise InvalidCredentialError(
                f"{env_name} does not look like a Hugging Face token (expected prefix '{prefix}'); "
                "create one at https://huggingface.co/settings/tokens",
                env=env_name,
            )
        return token

    def _new_state(self) -> RequestState:
        return RequestState()

    # ---- 传输与解码 ----

    async def _run(
        self,
        url: str,
        token: str,
        payload: Dict[str, Any],
        state: RequestState,
        on_fragment: Optional[FragmentCallback],
        log_ctx: Dict[str, Any],
    ) -> None:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        # httpx 自身不设超时：响应头阶段由计时器约束，流读取阶段不限时
        async with httpx.AsyncClient(transport=self._transport, timeout=None, trust_env=False) as client:
            request = client.build_request("POST", url, json=payload, headers=headers)
            state.arm(self._config.timeout)
            response = await client.send(request, stream=True)
            state.disarm()
            try:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    if self._config.loading_marker in body:
                        raise ModelWarmingUpError(body=body, status=response.status_code, model_id=log_ctx["model_id"])
                    raise UpstreamError(response.status_code, body, model_id=log_ctx["model_id"])
                await self._consume(response, state, on_fragment, log_ctx)
            finally:
                await response.aclose()

    async def _consume(
        self,
        response: httpx.Response,
        state: RequestState,
        on_fragment: Optional[FragmentCallback],
        log_ctx: Dict[str, Any],
    ) -> None:
        # aiter_lines 负责跨块的多字节字符和半行缓存，最后一段未换行的内容也会作为一行返回
        async for line in response.aiter_lines():
            self._handle_line(line, state, on_fragment, log_ctx)
        state.bytes_received = response.num_bytes_downloaded

        if state.bytes_received == 0:
            raise EmptyBodyError(model_id=log_ctx["model_id"])
        if state.fragment_count == 0:
            raise SilentModelError(model_id=log_ctx["model_id"], malformed_lines=state.malformed_count)

    def _handle_line(
        self,
        line: str,
        state: RequestState,
        on_fragment: Optional[FragmentCallback],
        log_ctx: Dict[str, Any],
    ) -> None:
        event = parse_event_line(line, self._config.done_sentinel)
        if event.kind == "malformed":
            state.malformed_count += 1
            logger.debug("Ignored malformed stream line", extra={"extra": {**log_ctx, "line": line[:200]}})
            if self._on_malformed is not None:
                self._on_malformed(line)
            return
        if event.kind != "fragment":
            return
        if event.error:
            self._log(logging.WARNING, "Upstream reported a stream error", log_ctx, error=event.error)

        fragment = event.text.replace(self._config.end_of_turn_marker, "")
        if not fragment:
            return
        state.parts.append(fragment)
        state.fragment_count += 1
        if on_fragment is not None:
            on_fragment(fragment)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
