"""chatml_stream 顶层包。

该包提供面向 Hugging Face 文本生成端点的流式客户端，
包括配置加载、ChatML prompt 拼接、增量流解码、错误分类与日志。
"""

from chatml_stream.api.service import run_chat
from chatml_stream.domain.models import Message
from chatml_stream.providers import HuggingFaceStreamClient, InferenceConfig, create_provider

__all__ = ["Message", "HuggingFaceStreamClient", "InferenceConfig", "create_provider", "run_chat"]
