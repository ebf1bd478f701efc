from chatml_stream.providers.sse import parse_event_line


def test_parse_event_line_kinds():
    assert parse_event_line(": keep-alive").kind == "noise"
    assert parse_event_line("").kind == "noise"
    assert parse_event_line("data: [DONE]").kind == "done"
    assert parse_event_line("data:[DONE]  ").kind == "done"
    assert parse_event_line("data: {oops").kind == "malformed"
    assert parse_event_line('data: "text"').kind == "malformed"


def test_parse_event_line_deeply_nested_payload_is_malformed():
    ev = parse_event_line("data: " + "[" * 200000)
    assert ev.kind == "malformed"


def test_parse_event_line_extracts_token_text():
    ev = parse_event_line('data: {"token": {"id": 3, "text": "hi", "special": false}}')
    assert ev.kind == "fragment"
    assert ev.text == "hi"


def test_parse_event_line_missing_text_is_empty():
    assert parse_event_line('data: {"generated_text": "x"}').text == ""
    assert parse_event_line('data: {"token": "nope"}').text == ""
    assert parse_event_line('data: {"token": {"text": null}}').text == ""


def test_parse_event_line_reports_error_field():
    ev = parse_event_line('data: {"error": "Input validation error", "error_type": "validation"}')
    assert ev.kind == "fragment"
    assert ev.text == ""
    assert ev.error == "Input validation error"
