"""Split long report text into size-limited chat messages.

Each chunk is wrapped in a delimiter pair (a Markdown code fence by default)
so that it renders as a block on its own.  Joining the unwrapped chunks gives
back the original text exactly.
"""

from __future__ import annotations

DEFAULT_WRAPPER = "```"
DEFAULT_LIMIT = 2000


def _split_line(line: str, capacity: int) -> list[str]:
    """Cut a line into pieces of at most *capacity* characters."""
    return [line[i : i + capacity] for i in range(0, len(line), capacity)]


def split_long_message(
    text: str,
    wrapper: str = DEFAULT_WRAPPER,
    limit: int = DEFAULT_LIMIT,
) -> list[str]:
    """Split *text* into wrapped chunks no longer than *limit*.

    Whole lines (with their trailing newline) are packed greedily into each
    chunk.  A line that cannot fit in an empty chunk is cut at the character
    level; the pieces before the last are emitted on their own and the last
    piece starts the next chunk.

    Args:
        text: The text to split.  May be empty.
        wrapper: Delimiter placed before and after each chunk's content.
        limit: Maximum length of a wrapped chunk.

    Returns:
        List of ``wrapper + content + wrapper`` strings.  Empty if *text*
        is empty.

    Raises:
        ValueError: If *limit* leaves no room for content inside the wrapper.
    """
    capacity = limit - 2 * len(wrapper)
    if capacity <= 0:
        raise ValueError(
            f"limit={limit} is too small for wrapper {wrapper!r} (need more than {2 * len(wrapper)})"
        )

    contents: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        if len(current) + len(line) <= capacity:
            current += line
            continue

        if current:
            contents.append(current)
            current = ""

        if len(line) <= capacity:
            current = line
        else:
            pieces = _split_line(line, capacity)
            contents.extend(pieces[:-1])
            current = pieces[-1]

    if current:
        contents.append(current)

    return [f"{wrapper}{content}{wrapper}" for content in contents]
