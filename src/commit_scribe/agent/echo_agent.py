"""Local deterministic stand-in for the Claude CLI, used by integration tests.

Accepts the same ``-p <instruction> --model <model>`` arguments and reads the
context from stdin. Behaviour can be steered through environment variables:

- ``COMMIT_SCRIBE_ECHO_EXIT_CODE``: exit with this code instead of 0.
- ``COMMIT_SCRIBE_ECHO_STDERR``: text written to stderr.
- ``COMMIT_SCRIBE_ECHO_FAIL_MODELS``: comma-separated models the two settings
  above apply to; all models when unset.
- ``COMMIT_SCRIBE_ECHO_SLEEP_SECONDS``: delay before answering.
"""

from __future__ import annotations

import argparse
import os
import re
import sys
import time

_FILE_HEADER = re.compile(r"^=== FILE: (?P<path>.+) ===$", re.MULTILINE)
_ANALYSIS_HEADER = re.compile(r"^--- (?P<path>.+) ---$", re.MULTILINE)
_DIFF_HEADER = re.compile(r"^diff --git a/\S+ b/(?P<path>\S+)$", re.MULTILINE)


def main(argv: list[str] | None = None) -> int:
    """Answer one request on stdout."""

    parser = argparse.ArgumentParser()
    parser.add_argument("-p", dest="instruction", required=True)
    parser.add_argument("--model", default="sonnet")
    args = parser.parse_args(argv)

    context = sys.stdin.read()

    delay = float(os.getenv("COMMIT_SCRIBE_ECHO_SLEEP_SECONDS", "0"))
    if delay > 0:
        time.sleep(delay)

    if _failure_applies(args.model):
        stderr_text = os.getenv("COMMIT_SCRIBE_ECHO_STDERR", "")
        if stderr_text:
            sys.stderr.write(stderr_text)

        exit_code = int(os.getenv("COMMIT_SCRIBE_ECHO_EXIT_CODE", "0"))
        if exit_code != 0:
            return exit_code

    sys.stdout.write(render_answer(context, model=args.model))
    return 0


def _failure_applies(model: str) -> bool:
    models = os.getenv("COMMIT_SCRIBE_ECHO_FAIL_MODELS", "")
    selected = {name.strip() for name in models.split(",") if name.strip()}
    return not selected or model in selected


def render_answer(context: str, *, model: str) -> str:
    """Build a deterministic answer from the request context."""

    file_match = _FILE_HEADER.search(context)
    if file_match is not None:
        return f"Updated {file_match.group('path')} ({model})\n"

    paths = _ANALYSIS_HEADER.findall(context) or _DIFF_HEADER.findall(context)
    if not paths:
        return "chore: update repository\n"
    noun = "file" if len(paths) == 1 else "files"
    return f"chore: update {len(paths)} {noun}\n\n" + "".join(f"- {path}\n" for path in paths)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
