"""Tests for markdown-aware text chunking."""

from gyanu.services.chunker import TextChunk, chunk_text


def test_empty_text_has_no_chunks():
    assert chunk_text("") == []
    assert chunk_text("   \n\n  ") == []


def test_short_text_is_one_chunk():
    chunks = chunk_text("Plants make food from light.")
    assert chunks == [TextChunk("Plants make food from light.", 0, [])]
    assert chunks[0].embedding_input() == "Plants make food from light."


def test_headings_set_hierarchy_and_are_not_content():
    text = "# Life Processes\nIntro line.\n## Nutrition\nPlants make food.\n## Respiration\nCells release energy."
    chunks = chunk_text(text)

    assert [c.content for c in chunks] == ["Intro line.", "Plants make food.", "Cells release energy."]
    assert [c.heading_hierarchy for c in chunks] == [
        ["Life Processes"],
        ["Life Processes", "Nutrition"],
        ["Life Processes", "Respiration"],
    ]
    assert [c.chunk_index for c in chunks] == [0, 1, 2]
    assert chunks[1].embedding_input() == "Life Processes > Nutrition\nPlants make food."


def test_long_text_is_split_with_overlap():
    lines = [f"line {i:02d} " + "x" * 20 for i in range(20)]
    chunks = chunk_text("\n".join(lines), chunk_size=100, chunk_overlap=30)

    assert len(chunks) > 1
    assert all(len(c.content) <= 100 for c in chunks)
    # Each chunk after the first starts with the tail of the previous one
    for previous, current in zip(chunks, chunks[1:]):
        assert previous.content[-10:] in current.content
    joined = " ".join(c.content for c in chunks)
    for line in lines:
        assert line in joined


def test_no_overlap():
    lines = [f"sentence {i} " + "y" * 40 for i in range(6)]
    chunks = chunk_text("\n".join(lines), chunk_size=120, chunk_overlap=0)
    assert "\n".join(c.content for c in chunks) == "\n".join(lines)


def test_oversized_line_is_kept_whole():
    line = "z" * 500
    chunks = chunk_text(line, chunk_size=100, chunk_overlap=10)
    assert [c.content for c in chunks] == [line]


def test_heading_only_text_is_one_chunk():
    assert chunk_text("# What is gravity?") == [TextChunk("# What is gravity?", 0, [])]

    chunks = chunk_text("# Gravity\n## Why do apples fall?\n")
    assert [c.content for c in chunks] == ["# Gravity\n## Why do apples fall?"]
    assert chunks[0].embedding_input() == chunks[0].content
