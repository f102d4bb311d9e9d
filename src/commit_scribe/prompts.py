"""Instruction and context builders for each agent call."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AnalysisRecord:
    """Per-file analysis produced by the map phase."""

    file_path: str
    analysis: str


@dataclass(frozen=True, slots=True)
class FileContext:
    """Staged content of one file, attached to single-call context."""

    file_path: str
    content: str


ANALYSIS_INSTRUCTION = """\
You are analyzing ONE file from a staged git change set. The file diff and, when
available, the full staged file content are provided via stdin.

Describe the change in 2-4 short lines:
- WHAT changed (functions, types, behaviour, configuration).
- WHY it likely changed (bug fix, new feature, refactor, cleanup).
- TYPE of change as a conventional commit type (feat, fix, refactor, docs, test, chore, perf, style, build, ci).

Output ONLY the analysis. No preamble, no markdown headings, no code fences."""

SYNTHESIS_INSTRUCTION = """\
You are writing a git commit message from per-file analyses of a staged change set.
The analyses, the list of changed binary files, and recent commit history are provided via stdin.

Rules:
- Follow conventional commit style if the recent commit history uses it, otherwise match the existing style.
- Keep the subject line under 72 characters and describe the change set as a whole.
- If the changes warrant a body, add it after a blank line; group related files instead of listing every file.
- Output ONLY the commit message text. No explanations, no markdown formatting, no code fences."""

_SINGLE_CALL_PARTS: tuple[str, ...] = (
    "Generate a concise git commit message for the staged changes provided via stdin.",
    "Follow conventional commit style if the recent commit history uses it, "
    "otherwise match the existing style.",
    "Output ONLY the commit message text.",
    "No explanations, no markdown formatting, no code fences.",
    "Keep the subject line under 72 characters.",
    "If the changes warrant a body, add it after a blank line.",
)

_READ_FILES_HINT = (
    "You are encouraged to read relevant files in the working directory "
    "to better understand the context of the changes."
)


def build_analysis_instruction() -> str:
    return ANALYSIS_INSTRUCTION


def build_analysis_context(file_path: str, diff: str, file_content: str | None) -> str:
    parts = [
        f"=== FILE: {file_path} ===",
        "",
        "=== DIFF ===",
        diff,
        "",
        "=== STAGED FILE CONTENT ===",
        file_content if file_content is not None else "(not available)",
    ]
    return "\n".join(parts)


def build_synthesis_instruction() -> str:
    return SYNTHESIS_INSTRUCTION


def build_synthesis_context(
    analyses: Sequence[AnalysisRecord],
    binary_files: Sequence[str],
    log: str,
) -> str:
    """Combine map-phase output, binary file list, and history for synthesis."""

    parts = ["=== PER-FILE ANALYSES ==="]
    for record in analyses:
        parts.extend([f"--- {record.file_path} ---", record.analysis, ""])

    parts.append("=== BINARY FILES CHANGED ===")
    if binary_files:
        parts.extend(binary_files)
    else:
        parts.append("(none)")

    parts.extend(["", "=== RECENT COMMITS ==="])
    parts.append(log.strip() if log.strip() else "(no history)")

    parts.extend(
        [
            "",
            "=== SUMMARY ===",
            f"{len(analyses)} files analyzed, {len(binary_files)} binary files changed",
        ],
    )
    return "\n".join(parts)


def build_single_call_instruction(include_file_context: bool = False) -> str:
    parts = list(_SINGLE_CALL_PARTS)
    if include_file_context:
        parts.append(_READ_FILES_HINT)
    return "\n".join(parts)


def build_single_call_context(
    diff: str,
    log: str,
    file_contexts: Sequence[FileContext] | None,
) -> str:
    parts = ["=== STAGED DIFF ===", diff]

    if file_contexts:
        parts.extend(["", "=== FULL FILE CONTENTS ==="])
        for file_context in file_contexts:
            parts.extend([f"--- {file_context.file_path} ---", file_context.content, ""])

    if log.strip():
        parts.extend(["", "=== RECENT COMMITS ===", log])

    return "\n".join(parts)
