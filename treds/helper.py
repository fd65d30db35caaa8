"""Key validation and quote-aware argument splitting."""

from __future__ import annotations

MAX_KEY_LENGTH = 512 * 1024 * 1024

_CLOSING_TO_OPENING = {")": "(", "}": "{", "]": "["}


def _is_balanced(open_stack: list[str], char: str) -> bool:
    """Return True if ``char`` closes the bracket on top of ``open_stack``."""
    if not open_stack:
        return False
    return _CLOSING_TO_OPENING.get(char) == open_stack[-1]


def is_json_like_key(key: str) -> bool:
    """Return True if the key has unbalanced curly braces or double quotes."""
    open_braces = 0
    in_double_quotes = False
    for char in key:
        if char == "{":
            open_braces += 1
        elif char == "}":
            open_braces -= 1
            if open_braces < 0:
                return True
        elif char == '"':
            in_double_quotes = not in_double_quotes
    return open_braces != 0 or in_double_quotes


def validate_key(key: str) -> bool:
    """Return True if ``key`` is acceptable as a store key."""
    if len(key.encode("utf-8", errors="surrogatepass")) > MAX_KEY_LENGTH:
        return False
    if is_json_like_key(key):
        return False
    return all(char.isprintable() for char in key)


def split_command_with_quotes(command: str) -> list[str]:
    """Split on spaces, keeping quoted and bracketed sections whole.

    Quote characters and brackets are kept in the resulting tokens.
    Raises ValueError when quotes or brackets are unbalanced.
    """
    result: list[str] = []
    current: list[str] = []
    open_stack: list[str] = []
    in_double = False
    in_single = False

    for char in command:
        if char == '"':
            if not in_single and not open_stack:
                in_double = not in_double
            current.append(char)
        elif char == "'":
            if not in_double and not open_stack:
                in_single = not in_single
            current.append(char)
        elif char in "([{":
            if not in_single and not in_double:
                open_stack.append(char)
            current.append(char)
        elif char in ")]}":
            if not in_single and not in_double:
                if not _is_balanced(open_stack, char):
                    raise ValueError("unbalanced brackets")
                open_stack.pop()
            current.append(char)
        elif char == " ":
            if in_double or in_single or open_stack:
                current.append(char)
            elif current:
                result.append("".join(current))
                current.clear()
        else:
            current.append(char)

    if in_double or in_single or open_stack:
        raise ValueError("unbalanced quotes or brackets")
    if current:
        result.append("".join(current))
    return result