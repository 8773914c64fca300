"""Tests for distillmeta.documents."""

from __future__ import annotations

import logging

import pytest

from distillmeta.documents import DocumentParser, main_document, main_topics, split_front_matter
from tests._fixtures.repo_builder import RepoBuilder


def test_split_front_matter_separates_yaml_from_body() -> None:
    front_matter, body = split_front_matter("---\ntitle: Notes\ntags: [memory]\n---\n# Heading\nText\n")

    assert front_matter == {"title": "Notes", "tags": ["memory"]}
    assert body == "# Heading\nText\n"


def test_split_front_matter_without_block_returns_text() -> None:
    assert split_front_matter("# Only body\n") == ({}, "# Only body\n")


def test_parser_sections_by_heading(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "content/index.md": """
            ---
            title: Memory Systems
            tags: [memory, recall]
            ---
            Intro paragraph about memory.

            # Encoding
            Encoding memory traces requires attention.

            ## Retrieval
            Retrieval cues support recall.
            """,
            "content/notes/extra.markdown": "Plain notes without headings.\n",
            "content/image.png": "not markdown",
        }
    )
    parser = DocumentParser(repo_builder.path())

    documents = parser.load(repo_builder.path() / "content")

    assert [document.path for document in documents] == ["content/index.md", "content/notes/extra.markdown"]
    index = documents[0]
    assert index.title == "Memory Systems"
    assert [section.title for section in index.sections] == ["Encoding", "Retrieval"]
    assert "memory" in index.sections[0].extracted_topics
    assert main_topics(index) == ["memory", "systems", "recall"]

    extra = documents[1]
    assert len(extra.sections) == 1
    assert extra.sections[0].title == "Article"


def test_parser_skips_documents_with_invalid_front_matter(
    repo_builder: RepoBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    repo_builder.write(
        {
            "content/broken.md": "---\ntitle: [unclosed\n---\nBody\n",
            "content/good.md": "# Fine\nBody\n",
        }
    )
    parser = DocumentParser(repo_builder.path())

    with caplog.at_level(logging.WARNING, logger="distillmeta"):
        documents = parser.load(repo_builder.path() / "content")

    assert [document.path for document in documents] == ["content/good.md"]
    assert "content/broken.md" in caplog.text


def test_missing_content_directory_yields_no_documents(repo_builder: RepoBuilder) -> None:
    assert DocumentParser(repo_builder.path()).load(repo_builder.path() / "content") == []


def test_main_document_prefers_index(repo_builder: RepoBuilder) -> None:
    parser = DocumentParser(repo_builder.path())
    first = parser.parse("content/a.md", "A\n")
    index = parser.parse("content/index.md", "Index\n")

    assert main_document([first, index]) is index
    assert main_document([first]) is first
    assert main_document([]) is None
