"""Turn a freeform model reply into files in the workspace.

A reply names each file on its own line and follows it with a fenced code
block::

    src/main.py
    ```python
    print("hello")
    ```

The scanner walks the reply fence by fence instead of relying on one
combined pattern, so the token lookup and the path clean-up rules can each be
exercised on their own.
"""

import re

from stepgen.config import ALL_OUTPUT_KEY, README_KEY
from stepgen.db import DB

FENCE = "```"

_FORBIDDEN_PATH_CHARS_RE = re.compile(r'[<>"|?*]')
_BRACKETED_RE = re.compile(r"^\[(.*)\]$")
_BACKTICKED_RE = re.compile(r"^`(.*)`$")
_CODE_BLOCK_RE = re.compile(r"```[^\n]*\n(.+?)```", re.DOTALL)


# ============================================
# Path sanitization
# ============================================


def strip_forbidden_chars(path: str) -> str:
    return _FORBIDDEN_PATH_CHARS_RE.sub("", path)


def unwrap_brackets(path: str) -> str:
    return _BRACKETED_RE.sub(r"\1", path)


def unwrap_backticks(path: str) -> str:
    return _BACKTICKED_RE.sub(r"\1", path)


def strip_trailing_bracket(path: str) -> str:
    """Drop one stray closing bracket, e.g. from ``[src/a.py]`` written as ``src/a.py]``."""
    return path[:-1] if path.endswith("]") else path


def sanitize_path(token: str) -> str:
    """Clean a candidate file path taken from a reply.

    Pure function. No validation: whatever is left is returned as-is and the
    store decides whether the key is usable.
    """
    path = strip_forbidden_chars(token)
    path = unwrap_brackets(path)
    path = unwrap_backticks(path)
    return strip_trailing_bracket(path)


# ============================================
# Scanner
# ============================================


def _token_before(chat: str, fence: int, lower_bound: int) -> str | None:
    """Return the path token that introduces the fence at *fence*, if any.

    The token is the run of non-whitespace characters that ends right before
    a newline, with only whitespace between that newline and the fence. The
    search never reaches back past *lower_bound* (the end of the last block).
    """
    gap_start = fence
    while gap_start > lower_bound and chat[gap_start - 1].isspace():
        gap_start -= 1
    if gap_start == fence or chat[gap_start] != "\n":
        return None

    token_start = gap_start
    while token_start > lower_bound and not chat[token_start - 1].isspace():
        token_start -= 1
    if token_start == gap_start:
        return None
    return chat[token_start:gap_start]


def scan_blocks(chat: str) -> list[tuple[str, str]]:
    """Find every (raw path token, block body) pair in *chat*, in order.

    States: seek a fence opener, look back for its path token, skip the
    language tag up to the newline, then capture the body (at least one
    character) up to the next fence.
    """
    blocks: list[tuple[str, str]] = []
    lower_bound = 0
    search_from = 0

    while True:
        fence = chat.find(FENCE, search_from)
        if fence == -1:
            break
        search_from = fence + 1

        token = _token_before(chat, fence, lower_bound)
        if token is None:
            continue

        newline = chat.find("\n", fence + len(FENCE))
        if newline == -1:
            break

        body_start = newline + 1
        close = chat.find(FENCE, body_start + 1)
        if close == -1:
            continue

        blocks.append((token, chat[body_start:close]))
        lower_bound = search_from = close + len(FENCE)

    return blocks


def parse_chat(chat: str) -> list[tuple[str, str]]:
    """Extract (path, content) pairs from a reply, plus a README.md pair.

    The README is everything before the first fence, or the whole reply when
    it contains no fenced block. It is always the last pair.
    """
    files = [(sanitize_path(token), code) for token, code in scan_blocks(chat)]
    readme = chat.split(FENCE)[0]
    files.append((README_KEY, readme))
    return files


def to_files(chat: str, workspace: DB) -> None:
    """Write the raw reply to all_output.txt, then every parsed file.

    The raw reply is written first, so a block named all_output.txt replaces it.
    """
    workspace.write(ALL_OUTPUT_KEY, chat)

    for file_name, file_content in parse_chat(chat):
        workspace.write(file_name, file_content)


def extract_code_blocks(text: str) -> list[str]:
    """Return the body of every fenced code block in *text*."""
    return _CODE_BLOCK_RE.findall(text)
