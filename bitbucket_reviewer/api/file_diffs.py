"""
Per-file diff views with on-screen line numbers.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from bitbucket_reviewer.analyzers.diff_annotator import should_include_file
from bitbucket_reviewer.models.api_response import AnnotatedLine, FileDiff
from bitbucket_reviewer.models.diff import FileSection
from bitbucket_reviewer.models.review import ReviewComment

Placements = Dict[Tuple[str, int], List[ReviewComment]]


def build_file_diffs(sections: Sequence[FileSection], placements: Optional[Placements] = None) -> List[FileDiff]:
    """
    Convert file sections into FileDiff views.

    Args:
        sections: Unfiltered file sections of a diff
        placements: Comments keyed by (new_path, line_number)

    Returns:
        One FileDiff per section, in diff order
    """
    placements = placements or {}
    files = []

    for section in sections:
        path = section.new_path or section.old_path
        lines = [
            AnnotatedLine(
                content=line.content,
                kind=line.kind,
                line_number=line.line_number,
                comments=placements.get((section.new_path, line.line_number), []) if line.line_number else [],
            )
            for line in section.lines
        ]
        files.append(FileDiff(
            path=path,
            old_path=section.old_path,
            change_type=section.change_type,
            lines_added=section.lines_added,
            lines_removed=section.lines_removed,
            included_in_review=should_include_file(path),
            lines=lines,
        ))

    return files
