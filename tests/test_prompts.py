from __future__ import annotations

import allure

from commit_scribe.prompts import (
    AnalysisRecord,
    FileContext,
    build_analysis_context,
    build_analysis_instruction,
    build_single_call_context,
    build_single_call_instruction,
    build_synthesis_context,
    build_synthesis_instruction,
)

pytestmark = [
    allure.epic("Commit Generation"),
    allure.feature("Prompt Builders"),
]


def test_analysis_instruction_asks_for_what_why_and_type() -> None:
    instruction = build_analysis_instruction()

    assert "WHAT" in instruction
    assert "WHY" in instruction
    assert "TYPE" in instruction


def test_analysis_context_contains_file_diff_and_content() -> None:
    context = build_analysis_context("src/app.py", "+print('hi')", "print('hi')\n")

    assert context.startswith("=== FILE: src/app.py ===")
    assert "=== DIFF ===\n+print('hi')" in context
    assert "=== STAGED FILE CONTENT ===\nprint('hi')\n" in context


def test_analysis_context_marks_missing_content() -> None:
    context = build_analysis_context("gone.py", "-x", None)

    assert context.endswith("=== STAGED FILE CONTENT ===\n(not available)")


def test_analysis_context_keeps_empty_content() -> None:
    context = build_analysis_context("empty.txt", "+", "")

    assert "(not available)" not in context


def test_synthesis_instruction_mentions_conventional_commits() -> None:
    instruction = build_synthesis_instruction()

    assert "conventional commit" in instruction
    assert "subject line" in instruction


def test_synthesis_context_sections_and_summary() -> None:
    context = build_synthesis_context(
        [
            AnalysisRecord("a.py", "feat: added a"),
            AnalysisRecord("b.py", "fix: repaired b"),
        ],
        ["logo.png"],
        "abc123 feat: earlier\n",
    )

    assert context.startswith("=== PER-FILE ANALYSES ===")
    assert "--- a.py ---\nfeat: added a" in context
    assert "--- b.py ---\nfix: repaired b" in context
    assert "=== BINARY FILES CHANGED ===\nlogo.png" in context
    assert "=== RECENT COMMITS ===\nabc123 feat: earlier" in context
    assert context.endswith("=== SUMMARY ===\n2 files analyzed, 1 binary files changed")


def test_synthesis_context_placeholders_for_empty_sections() -> None:
    context = build_synthesis_context([AnalysisRecord("a.py", "x")], [], "  \n")

    assert "=== BINARY FILES CHANGED ===\n(none)" in context
    assert "=== RECENT COMMITS ===\n(no history)" in context
    assert "1 files analyzed, 0 binary files changed" in context


def test_single_call_instruction_read_files_hint_is_optional() -> None:
    plain = build_single_call_instruction()
    with_hint = build_single_call_instruction(include_file_context=True)

    assert "commit message" in plain
    assert "conventional commit" in plain
    assert "read relevant files" not in plain
    assert with_hint.startswith(plain)
    assert "read relevant files" in with_hint


def test_single_call_context_with_all_sections() -> None:
    context = build_single_call_context(
        "diff --git a/x b/x",
        "abc123 chore: init",
        [FileContext("x", "content of x")],
    )

    assert context.startswith("=== STAGED DIFF ===\ndiff --git a/x b/x")
    assert "=== FULL FILE CONTENTS ===\n--- x ---\ncontent of x" in context
    assert context.endswith("=== RECENT COMMITS ===\nabc123 chore: init")


def test_single_call_context_omits_empty_sections() -> None:
    context = build_single_call_context("diff body", "", [])

    assert context == "=== STAGED DIFF ===\ndiff body"
    assert build_single_call_context("diff body", "   ", None) == context
