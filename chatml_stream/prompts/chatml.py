"""ChatML 风格的 prompt 拼接。

格式::

    <|im_start|>system\\n{instruction}<|im_end|>\\n
    <|im_start|>{role}\\n{content}<|im_end|>\\n   (每条消息一帧)
    <|im_start|>assistant\\n

content 中如果本身带有 <|im_start|>/<|im_end|>，这里不做转义，
会破坏下游模型看到的帧边界，这是已知限制。
"""

from typing import Iterable

from chatml_stream.domain.models import Message


IM_START = "<|im_start|>"
IM_END = "<|im_end|>"


def _frame(role: str, content: str) -> str:
    return f"{IM_START}{role}\n{content}{IM_END}\n"


def format_chatml(instruction: str, messages: Iterable[Message]) -> str:
    """把系统提示词和有序消息拼成单个模型输入字符串，并留出打开的 assistant 帧。"""

    parts = [_frame("system", instruction)]
    parts.extend(_frame(m.role, m.content) for m in messages)
    parts.append(f"{IM_START}assistant\n")
    return "".join(parts)
