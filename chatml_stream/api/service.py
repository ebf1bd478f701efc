"""对外 API 服务模块。

提供简化的同步函数接口供上层应用（CLI、脚本、没有事件循环的 UI）调用。
会话存储由调用方负责，这里只接收并返回消息列表。
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence

from chatml_stream.domain.models import Message
from chatml_stream.providers import create_provider
from chatml_stream.providers.hf_client import HuggingFaceStreamClient
from chatml_stream.infrastructure.logging.logger import logger


_client: Optional[HuggingFaceStreamClient] = None


def get_default_client() -> HuggingFaceStreamClient:
    """获取默认的流式客户端实例（单例）。"""
    global _client
    if _client is None:
        _client = create_provider()
    return _client


def run_chat(
    user_input: str,
    history: Optional[Sequence[Message]] = None,
    on_fragment: Optional[Callable[[str], None]] = None,
    model_id: Optional[str] = None,
    client: Optional[HuggingFaceStreamClient] = None,
) -> Dict[str, Any]:
    """运行一轮流式对话。

    Args:
        user_input: 用户输入
        history: 之前的消息（可选，不含本轮输入）
        on_fragment: 每个文本片段的回调（可选）
        model_id: 模型 ID（可选，默认取配置）
        client: 指定客户端（可选，默认使用单例）

    Returns:
        包含 model_id、reply 和追加了本轮问答的 history 的字典

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    client = client or get_default_client()
    messages: List[Message] = list(history or [])
    messages.append(Message(role="user", content=user_input))
    model = model_id or client.config.model_id
    try:
        reply = asyncio.run(client.stream_response(model, messages, on_fragment))
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {
            "model_id": model,
            "error": str(e),
            "error_code": getattr(e, "code", None),
        }})
        raise

    messages.append(Message(role="assistant", content=reply))
    return {
        "model_id": model,
        "reply": reply,
        "history": messages,
    }
