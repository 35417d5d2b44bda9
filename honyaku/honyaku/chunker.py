"""
Splitting of long text into request-sized chunks.

Both passes pack units greedily: a unit joins the current chunk unless that
would push the chunk over the limit. A unit that is longer than the limit on
its own becomes a chunk by itself, so nothing is ever truncated.
"""

from typing import Iterable, List


def _pack(units: Iterable[str], max_size: int, separator: str) -> List[str]:
    chunks: List[str] = []
    current: List[str] = []
    current_size = 0

    for unit in units:
        unit_size = len(unit) + (len(separator) if current else 0)

        if current and current_size + unit_size > max_size:
            chunks.append(separator.join(current))
            current = [unit]
            current_size = len(unit)
        else:
            current.append(unit)
            current_size += unit_size

    if current:
        chunks.append(separator.join(current))

    return chunks


def _split_lines(text: str) -> List[str]:
    """Splits on newlines only, dropping a trailing carriage return per line and a final empty line."""
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def chunk_lines(text: str, max_size: int) -> List[str]:
    """
    Splits text into chunks of whole lines, each at most max_size characters.

    Lines inside a chunk are joined with a newline. A single line longer than
    max_size is returned as its own chunk.
    """
    if not text:
        return []
    return _pack(_split_lines(text), max_size, "\n")


def chunk_text(text: str, max_size: int) -> List[str]:
    """
    Splits text on line boundaries, then re-splits any oversized chunk on whitespace.

    Args:
        text: The text to split.
        max_size: Maximum chunk size in characters.

    Returns:
        Chunks in order. Empty input gives an empty list.
    """
    if max_size <= 0:
        raise ValueError("max_size must be greater than 0")

    final_chunks: List[str] = []
    for chunk in chunk_lines(text, max_size):
        if len(chunk) <= max_size:
            final_chunks.append(chunk)
            continue
        # Mostly relevant for mixed-script text; pure Japanese has no spaces
        words = chunk.split()
        final_chunks.extend(_pack(words, max_size, " ") if words else [chunk])

    return final_chunks
