"""Split markdown text into overlapping chunks that keep their heading path."""

import re
from dataclasses import dataclass, field

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")


@dataclass
class TextChunk:
    content: str
    chunk_index: int
    heading_hierarchy: list[str] = field(default_factory=list)

    def embedding_input(self) -> str:
        """Content prefixed with its heading path, for embedding."""
        if not self.heading_hierarchy:
            return self.content
        return " > ".join(self.heading_hierarchy) + "\n" + self.content


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[TextChunk]:
    """
    Split `text` line by line into chunks of roughly `chunk_size` characters.

    Heading lines are not part of any chunk; they start a new section and
    set the hierarchy recorded on the chunks that follow. When a chunk
    fills up, the last `chunk_overlap` characters carry over into the next
    one. A single line longer than `chunk_size` is kept whole. Text made
    only of headings becomes a single chunk holding the heading lines.
    """
    chunks: list[TextChunk] = []
    headings: list[str] = []
    buffer = ""

    def flush() -> None:
        trimmed = buffer.strip()
        if trimmed:
            chunks.append(TextChunk(trimmed, len(chunks), list(headings)))

    for line in text.split("\n"):
        match = _HEADING.match(line)
        if match:
            flush()
            buffer = ""
            level = len(match.group(1))
            headings = headings[: level - 1] + [match.group(2).strip()]
            continue

        line += "\n"
        if buffer and len(buffer) + len(line) > chunk_size:
            flush()
            if chunk_overlap > 0 and len(buffer) > chunk_overlap:
                buffer = buffer[-chunk_overlap:]
            else:
                buffer = ""
        buffer += line

    flush()
    if not chunks and text.strip():
        # Headings only: the heading text itself is the content
        headings_only = "\n".join(line.strip() for line in text.split("\n") if line.strip())
        chunks.append(TextChunk(headings_only, 0, []))
    return chunks
