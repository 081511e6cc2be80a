import base64


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens for a given text."""
    return len(text) // 4


def decode_content(content: str) -> str:
    return base64.b64decode(content).decode("utf-8")
