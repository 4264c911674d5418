"""Text helpers used by the document tools.

`extract_relevant_text` and `extract_descriptions` are not called by the tools
themselves; they are public helpers for post-processing tool outputs.
`extract_relevant_text` cuts back-to-back windows, so it does not line up with
overlapping chunks; use `split_text_into_chunks(...)[index]` for those.
"""

from __future__ import annotations

from agent_workflow.errors import ToolInputInvalid


def estimate_tokens(text: str) -> int:
    """Rough token estimate: 1 token ≈ 4 characters."""
    return len(text) // 4


def split_text_into_chunks(text: str, chunk_size: int, chunk_overlap: int) -> list[str]:
    """Split text into overlapping windows of whitespace-separated words.

    Each window holds up to `chunk_size` words and starts `chunk_size -
    chunk_overlap` words after the previous one. A window is shrunk from the
    right while its estimated token count exceeds `chunk_size`. The final
    window may be shorter.

    Raises:
        ToolInputInvalid: If the sizes cannot make forward progress.
    """
    if chunk_size <= 0:
        raise ToolInputInvalid("chunkSize must be positive")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ToolInputInvalid("chunkOverlap must be >= 0 and smaller than chunkSize")

    words = text.split()
    step = chunk_size - chunk_overlap
    chunks: list[str] = []
    start = 0

    while start < len(words):
        end = min(start + chunk_size, len(words))
        chunk = " ".join(words[start:end])
        while estimate_tokens(chunk) > chunk_size and end - start > 1:
            end -= 1
            chunk = " ".join(words[start:end])
        chunks.append(chunk)

        if end == len(words):
            break
        start += step

    return chunks


def truncate_text_to_token_limit(text: str, max_tokens: int) -> str:
    """Keep at most `max_tokens` words of `text`."""
    words = text.split()
    if len(words) > max_tokens:
        return " ".join(words[:max_tokens])
    return text


def extract_relevant_text(text: str, index: int, chunk_size: int) -> str:
    """Return the `index`-th non-overlapping window of `chunk_size` words."""
    words = text.split()
    start = index * chunk_size
    end = min(start + chunk_size, len(words))
    return " ".join(words[start:end])


def extract_descriptions(content: str) -> list[str]:
    """Split a model answer into one description per non-empty line."""
    descriptions = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("No images needed"):
            descriptions.append(line)
    return descriptions
