"""流式推理共享的数据模型。

- Message: 一条对话消息，由调用方的会话存储持有，这里只读。
- StreamEvent: 线路协议中单行事件的解析结果，不做持久化。
"""

from dataclasses import dataclass
from typing import Literal, Optional


# ChatML 中出现的消息角色
Role = Literal["system", "user", "assistant"]

EventKind = Literal["fragment", "done", "noise", "malformed"]


@dataclass(frozen=True)
class Message:
    """一条对话消息。

    - role: system / user / assistant。
    - content: 纯文本内容，原样写入 prompt，不做转义。
    """

    role: Role
    content: str


@dataclass(frozen=True)
class StreamEvent:
    """一行 `data:` 事件的分类结果。

    kind:
        - "fragment": JSON 载荷，text 为 token.text（可能为空串）。
        - "done": 结束哨兵 `[DONE]`。
        - "noise": 非 `data:` 开头的行（注释、空行、keep-alive 等）。
        - "malformed": JSON 解析失败或结构不是对象。
    """

    kind: EventKind
    text: str = ""
    raw: Optional[str] = None
    error: Optional[str] = None
