"""推理端点集成层。

该包下的模块负责：
- 维护端点与生成参数配置 (registry)。
- 流式响应的增量解码 (sse)。
- Hugging Face 流式客户端实现 (hf_client)。
"""

from typing import Optional

from chatml_stream.config.settings import settings
from chatml_stream.providers.hf_client import HuggingFaceStreamClient
from chatml_stream.providers.registry import InferenceConfig


def create_provider(cfg=None, **kwargs) -> HuggingFaceStreamClient:
    """根据配置创建客户端实例，默认取全局 settings。

    kwargs 原样传给 HuggingFaceStreamClient（如 token、transport、on_malformed）。
    """

    return HuggingFaceStreamClient(InferenceConfig.from_settings(cfg or settings), **kwargs)


__all__ = ["create_provider", "HuggingFaceStreamClient", "InferenceConfig"]
