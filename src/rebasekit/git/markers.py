"""Conflict marker detection and hunk parsing."""

from __future__ import annotations

from dataclasses import dataclass

CONFLICT_BEGIN = "<<<<<<<"
CONFLICT_BASE = "|||||||"
CONFLICT_SEPARATOR = "======="
CONFLICT_END = ">>>>>>>"


def has_markers(content: str) -> bool:
    """True iff content holds the begin, separator and end markers.

    This is the single test for "still conflicted" everywhere a file
    is resolved, written or continued.
    """
    return (
        CONFLICT_BEGIN in content
        and CONFLICT_SEPARATOR in content
        and CONFLICT_END in content
    )


@dataclass
class ConflictHunk:
    """One conflicted region of a file."""

    start_line: int
    end_line: int
    ours: str
    theirs: str
    base: str | None
    ours_label: str
    theirs_label: str


def parse(content: str) -> list[ConflictHunk]:
    """Locate conflict hunks in file content.

    Handles both the two-way and the diff3 (``|||||||`` base section)
    layouts. Line numbers are 1-indexed and inclusive of the marker
    lines.

    Raises:
        ValueError: If a begin marker has no separator or end marker
    """
    lines = content.splitlines(keepends=True)
    hunks = []
    i = 0

    while i < len(lines):
        if not lines[i].startswith(CONFLICT_BEGIN):
            i += 1
            continue

        begin = i
        base = separator = end = None
        for j in range(begin + 1, len(lines)):
            line = lines[j]
            if separator is None and line.startswith(CONFLICT_BASE):
                base = j
            elif separator is None and line.startswith(CONFLICT_SEPARATOR):
                separator = j
            elif separator is not None and line.startswith(CONFLICT_END):
                end = j
                break

        if separator is None:
            raise ValueError(
                f"Malformed conflict at line {begin + 1}: no separator"
            )
        if end is None:
            raise ValueError(
                f"Malformed conflict at line {begin + 1}: no end marker"
            )

        ours_stop = base if base is not None else separator
        hunks.append(ConflictHunk(
            start_line=begin + 1,
            end_line=end + 1,
            ours="".join(lines[begin + 1:ours_stop]).rstrip("\r\n"),
            theirs="".join(lines[separator + 1:end]).rstrip("\r\n"),
            base=(
                "".join(lines[base + 1:separator]).rstrip("\r\n")
                if base is not None else None
            ),
            ours_label=lines[begin][len(CONFLICT_BEGIN):].strip() or "ours",
            theirs_label=lines[end][len(CONFLICT_END):].strip() or "theirs",
        ))
        i = end + 1

    return hunks
