"""流式响应单行事件的解析。

TGI 的流式接口返回按行分隔的 `data:` 事件。拆行（包括跨块的
多字节字符和半行）交给 httpx 的 Response.aiter_lines，这里只负责
把一行文本分类成 StreamEvent。
"""

import json

from chatml_stream.domain.models import StreamEvent


DATA_PREFIX = "data:"


def parse_event_line(line: str, done_sentinel: str = "[DONE]") -> StreamEvent:
    """把一行文本分类为 StreamEvent。

    非 `data:` 行是 noise；`[DONE]` 是 done；JSON 解析失败（包括嵌套过深）
    或载荷不是对象记为 malformed；其余取 token.text（缺失时为空串）。
    """

    if not line.startswith(DATA_PREFIX):
        return StreamEvent(kind="noise", raw=line)
    payload = line[len(DATA_PREFIX):].strip()
    if payload == done_sentinel:
        return StreamEvent(kind="done", raw=line)
    try:
        data = json.loads(payload)
    except (ValueError, RecursionError):
        return StreamEvent(kind="malformed", raw=line)
    if not isinstance(data, dict):
        return StreamEvent(kind="malformed", raw=line)

    token = data.get("token")
    text = token.get("text") if isinstance(token, dict) else None
    if not isinstance(text, str):
        text = ""
    error = data.get("error")
    return StreamEvent(kind="fragment", text=text, raw=line, error=str(error) if error else None)
