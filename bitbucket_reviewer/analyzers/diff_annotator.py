"""
Diff Annotator component.

Turns a unified diff into a sequence of DiffLine records carrying the
reconstructed post-image (new file) line number of every added and context
line. The same scan backs both the annotated diff sent to the reviewer and
the numbered diff used to anchor review comments on screen, so the two
always agree on line numbers.
"""

import fnmatch
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from bitbucket_reviewer.models.diff import DiffLine, DiffLineKind, FileSection, Hunk
from bitbucket_reviewer.models.review import ReviewComment
from bitbucket_reviewer.utils.logging import get_logger

logger = get_logger(__name__)

FileFilter = Callable[[str], bool]

HUNK_HEADER_PATTERN = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
DIFF_GIT_PATTERN = re.compile(r"^diff --git a/(.*?) b/(.*)$")

DEV_NULL = "/dev/null"

# Git extended header lines, only meaningful before the first hunk of a file
EXTENDED_HEADER_PREFIXES = (
    "index ",
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "similarity index",
    "dissimilarity index",
    "rename from",
    "rename to",
    "copy from",
    "copy to",
    "Binary files",
)

EXCLUDED_EXTENSIONS = (
    ".xml", ".svg", ".xls", ".xlsx", ".csv", ".json", ".yaml", ".yml",
    ".md", ".txt", ".log", ".lock", ".lockb", ".png", ".jpg", ".jpeg",
    ".gif", ".ico", ".woff", ".woff2", ".ttf", ".eot", ".pdf", ".zip",
    ".tar", ".gz", ".rar", ".7z", ".exe", ".dll", ".so", ".dylib",
    ".bin", ".dat", ".db", ".sqlite", ".sqlite3", ".mdb", ".accdb",
    ".psd", ".ai", ".sketch", ".fig", ".mp4", ".avi", ".mov", ".wmv",
    ".mp3", ".wav", ".flac", ".aac", ".ogg", ".webm", ".webp",
)

EXCLUDED_PATH_SUBSTRINGS = (
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "node_modules/",
    "dist/",
    "build/",
    "coverage/",
    ".next/",
    ".nuxt/",
    ".cache/",
)

EXCLUDED_FILE_NAMES = (".env", ".env.local", ".env.production")

EXCLUDED_FILE_PATTERNS = ("*.min.js", "*.min.css", "*.bundle.js", "*.chunk.js")


def should_include_file(file_path: str) -> bool:
    """
    Decide whether a file should be sent to the reviewer.

    Images, archives, binaries, fonts, media, data and lock files are
    excluded by extension; dependency and build directories, lockfiles,
    env files and minified or bundled assets by path. Case-insensitive.

    Args:
        file_path: Path of the file, with or without a/ or b/ prefix

    Returns:
        True if the file is reviewable source
    """
    lower_path = file_path.lower()

    if lower_path.endswith(EXCLUDED_EXTENSIONS):
        return False

    if any(pattern in lower_path for pattern in EXCLUDED_PATH_SUBSTRINGS):
        return False

    file_name = lower_path.rsplit("/", 1)[-1]
    if file_name in EXCLUDED_FILE_NAMES:
        return False

    return not any(fnmatch.fnmatchcase(file_name, pattern) for pattern in EXCLUDED_FILE_PATTERNS)


def strip_path_prefix(path: str) -> str:
    """Strip the a/ or b/ marker (and any trailing timestamp) from a diff path."""
    path = path.split("\t", 1)[0].strip()
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def parse_hunk_header(line: str) -> Optional[Hunk]:
    """
    Parse a hunk header of the form @@ -a[,b] +c[,d] @@.

    Args:
        line: Diff line starting with @@

    Returns:
        Parsed Hunk, or None if the header is malformed
    """
    match = HUNK_HEADER_PATTERN.search(line)
    if not match:
        return None

    old_start, old_count, new_start, new_count = match.groups()
    return Hunk(
        old_start=int(old_start),
        old_count=int(old_count) if old_count is not None else 1,
        new_start=int(new_start),
        new_count=int(new_count) if new_count is not None else 1,
    )


class _DiffScanner:
    """Scan state for one diff: current file section, hunk flag and post-image counter."""

    def __init__(self, include: Optional[FileFilter]):
        self.include = include
        self.sections: List[FileSection] = []
        self.in_hunk = False
        self.line_number = 0
        self.old_remaining = 0
        self.new_remaining = 0
        self._seen_old_marker = False

    @property
    def current(self) -> Optional[FileSection]:
        return self.sections[-1] if self.sections else None

    def _start_section(self) -> FileSection:
        section = FileSection()
        self.sections.append(section)
        self._seen_old_marker = False
        return section

    def _evaluate(self, section: FileSection) -> None:
        path = section.new_path or section.old_path
        was_included = section.included
        section.included = self.include(path) if self.include else True
        if was_included and not section.included:
            logger.debug(f"Skipping non-code file: {path}")

    @property
    def hunk_open(self) -> bool:
        """True while the current hunk still expects lines from its header counts."""
        return self.in_hunk and (self.old_remaining > 0 or self.new_remaining > 0)

    def _is_file_header(self, raw: str) -> bool:
        if raw.startswith("diff "):
            return True
        # Removed "-- x" or added "++x" lines look like ---/+++ headers
        if self.hunk_open:
            return False
        if raw.startswith(("---", "+++")):
            return True
        return not self.in_hunk and raw.startswith(EXTENDED_HEADER_PREFIXES)

    def _handle_file_header(self, raw: str) -> FileSection:
        section = self.current

        if raw.startswith("diff "):
            section = self._start_section()
            match = DIFF_GIT_PATTERN.match(raw)
            if match:
                section.old_path = match.group(1)
                section.new_path = match.group(2)
        elif raw.startswith("---"):
            if section is None or self.in_hunk or self._seen_old_marker:
                section = self._start_section()
            self._seen_old_marker = True
            path = strip_path_prefix(raw[3:])
            if path and path != DEV_NULL:
                section.old_path = path
                if not section.new_path:
                    section.new_path = path
        elif raw.startswith("+++"):
            if section is None or self.in_hunk:
                section = self._start_section()
            path = strip_path_prefix(raw[3:])
            if path and path != DEV_NULL:
                section.new_path = path
        elif section is None:
            section = self._start_section()

        # Per-file state resets at every header line
        self.in_hunk = False
        self.line_number = 0
        self.old_remaining = 0
        self.new_remaining = 0
        self._evaluate(section)
        return section

    def feed(self, raw: str) -> Optional[DiffLine]:
        """
        Consume one raw diff line.

        Returns:
            The resolved DiffLine, or None when the line belongs to an excluded file
        """
        if self._is_file_header(raw):
            section = self._handle_file_header(raw)
            if not section.included:
                return None
            return self._emit(section, raw, DiffLineKind.FILE_HEADER)

        section = self.current
        if section is None:
            # Bare hunks without any file header
            section = self._start_section()

        numbered = False
        if raw.startswith("@@"):
            kind = DiffLineKind.HUNK_HEADER
            hunk = parse_hunk_header(raw)
            if hunk is not None:
                if section.included:
                    section.hunks.append(hunk)
                self.line_number = hunk.new_start - 1
                self.old_remaining = hunk.old_count
                self.new_remaining = hunk.new_count
                self.in_hunk = True
        elif raw.startswith("+"):
            kind = DiffLineKind.ADDED
            numbered = self.in_hunk
            self._consume(new=True)
        elif raw.startswith("-"):
            kind = DiffLineKind.REMOVED
            self._consume(old=True)
        elif raw.startswith("\\"):
            kind = DiffLineKind.MARKER
        else:
            kind = DiffLineKind.CONTEXT
            numbered = self.in_hunk
            self._consume(old=True, new=True)

        # Hunk counts are tracked for excluded files too, so their content never reads as a header
        if not section.included:
            return None
        return self._emit(section, raw, kind, numbered=numbered)

    def _consume(self, old: bool = False, new: bool = False) -> None:
        if old and self.old_remaining > 0:
            self.old_remaining -= 1
        if new and self.new_remaining > 0:
            self.new_remaining -= 1

    def _emit(self, section: FileSection, raw: str, kind: DiffLineKind, numbered: bool = False) -> DiffLine:
        line_number = None
        if numbered:
            self.line_number += 1
            line_number = self.line_number

        line = DiffLine(content=raw, kind=kind, line_number=line_number, file_path=section.new_path)
        section.lines.append(line)
        return line


def _scan(diff_text: str, include: Optional[FileFilter]) -> Tuple[List[DiffLine], List[FileSection]]:
    scanner = _DiffScanner(include)
    lines = []
    for raw in diff_text.splitlines():
        line = scanner.feed(raw)
        if line is not None:
            lines.append(line)
    return lines, scanner.sections


def annotate_diff(diff_text: str, include: Optional[FileFilter] = None) -> List[DiffLine]:
    """
    Resolve every line of a unified diff.

    Args:
        diff_text: Unified diff text
        include: Optional predicate on the new file path; lines of files it
            rejects, headers included, are dropped from the output

    Returns:
        DiffLine records in diff order
    """
    lines, _ = _scan(diff_text, include)
    return lines


def split_file_sections(diff_text: str, include: Optional[FileFilter] = None) -> List[FileSection]:
    """
    Group a unified diff into per-file sections.

    Excluded files are still listed, flagged as not included and without lines.

    Args:
        diff_text: Unified diff text
        include: Optional predicate on the new file path

    Returns:
        FileSection records in diff order
    """
    _, sections = _scan(diff_text, include)
    return sections


def render_annotated_diff(lines: Sequence[DiffLine]) -> str:
    """Render lines as text, prefixing numbered lines with [LINE n]."""
    return "\n".join(
        f"[LINE {line.line_number}] {line.content}" if line.line_number is not None else line.content
        for line in lines
    )


def annotate_diff_for_review(diff_text: str) -> str:
    """Annotated diff of the reviewable files only, as embedded in the review prompt."""
    return render_annotated_diff(annotate_diff(diff_text, should_include_file))


def place_comments(
    diff_text: str,
    comments: Sequence[ReviewComment],
) -> Tuple[List[FileSection], Dict[Tuple[str, int], List[ReviewComment]], List[ReviewComment]]:
    """
    Anchor review comments on the lines of a diff.

    Re-derives line numbers for every file (unfiltered) and matches each
    comment's file path and line number against them.

    Args:
        diff_text: Unified diff text the review was produced from
        comments: Review comments to place

    Returns:
        Tuple of (sections, placements keyed by (new_path, line_number), unplaced comments)
    """
    sections = split_file_sections(diff_text)
    known_lines = {
        (section.new_path, line.line_number)
        for section in sections
        for line in section.lines
        if line.line_number is not None
    }

    placements: Dict[Tuple[str, int], List[ReviewComment]] = {}
    unplaced: List[ReviewComment] = []

    for comment in comments:
        if comment.line_number is None:
            unplaced.append(comment)
            continue
        key = (strip_path_prefix(comment.file_path or ""), comment.line_number)
        if key in known_lines:
            placements.setdefault(key, []).append(comment)
        else:
            unplaced.append(comment)

    if unplaced:
        logger.info(f"{len(unplaced)} comments did not match any diff line")

    return sections, placements, unplaced
