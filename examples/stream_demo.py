"""Minimal demonstration of the streaming client."""

import sys

from chatml_stream import run_chat
from chatml_stream.domain.exceptions import BusinessError

if __name__ == "__main__":
    question = " ".join(sys.argv[1:]) or "Introduce yourself in two sentences."
    print("User:", question)
    print("Model: ", end="", flush=True)
    try:
        result = run_chat(question, on_fragment=lambda text: print(text, end="", flush=True))
    except BusinessError as e:
        print(f"\n[{e.code}] {e.message}")
        sys.exit(1)
    print()
    print(f"({len(result['reply'])} chars)")
