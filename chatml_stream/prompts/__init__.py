"""系统提示词加载工具。

按名称从 prompts 目录读取 system prompt 文本，
用于构造 ChatML 的 system 帧。
"""

from pathlib import Path

from chatml_stream.prompts.chatml import format_chatml


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(name: str = "syko") -> str:
    """根据名称加载系统提示词文本（prompts/<name>_system.md）。"""

    fname = PROMPTS_DIR / f"{name}_system.md"
    return fname.read_text(encoding="utf-8")


__all__ = ["format_chatml", "load_system_prompt", "PROMPTS_DIR"]
