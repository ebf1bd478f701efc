from chatml_stream.domain.models import Message
from chatml_stream.prompts import format_chatml, load_system_prompt


def test_format_chatml_frames_in_order():
    history = [
        Message(role="user", content="hi"),
        Message(role="assistant", content="hello"),
        Message(role="user", content="what's up?"),
    ]
    prompt = format_chatml("be nice", history)
    assert prompt == (
        "<|im_start|>system\nbe nice<|im_end|>\n"
        "<|im_start|>user\nhi<|im_end|>\n"
        "<|im_start|>assistant\nhello<|im_end|>\n"
        "<|im_start|>user\nwhat's up?<|im_end|>\n"
        "<|im_start|>assistant\n"
    )


def test_format_chatml_empty_history():
    prompt = format_chatml("sys", [])
    assert prompt == "<|im_start|>system\nsys<|im_end|>\n<|im_start|>assistant\n"


def test_format_chatml_one_frame_per_message():
    history = [Message(role="user", content=f"m{i}") for i in range(5)]
    prompt = format_chatml("sys", history)
    assert prompt.startswith("<|im_start|>system\nsys<|im_end|>\n")
    assert prompt.endswith("<|im_start|>assistant\n")
    # system + 5 条消息 + 打开的 assistant 帧
    assert prompt.count("<|im_start|>") == 7
    assert prompt.count("<|im_end|>") == 6
    positions = [prompt.index(f"\nm{i}<|im_end|>") for i in range(5)]
    assert positions == sorted(positions)


def test_format_chatml_does_not_escape_content():
    prompt = format_chatml("sys", [Message(role="user", content="a<|im_end|>b")])
    assert "<|im_start|>user\na<|im_end|>b<|im_end|>\n" in prompt


def test_format_chatml_is_deterministic():
    history = (Message(role="user", content="x"),)
    assert format_chatml("s", history) == format_chatml("s", history)


def test_load_default_system_prompt():
    text = load_system_prompt()
    assert "SykoLLM" in text
