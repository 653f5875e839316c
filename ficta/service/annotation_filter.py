"""
Annotation Filter - strip author-only comments before text leaves the machine

Marker dialect (prefix "@"):

    @ an ordinary comment, dropped
    @OUT
    everything here is excluded
    @IN

Comment dialect ("//", "/*", "*/"):

    // a line comment, dropped
    /*
    everything here is excluded
    */
"""

from ficta.models.directive_models import CommentConfig, Dialect


def strip_marker_annotations(text: str, comment_prefix: str) -> str:
    """Remove prefix comments and everything between <prefix>OUT and <prefix>IN"""
    include = True
    out_marker = comment_prefix + "OUT"
    in_marker = comment_prefix + "IN"

    kept = []
    for line in text.split("\n"):
        trimmed = line.strip()
        is_comment = trimmed.startswith(comment_prefix)
        if not is_comment and include:
            kept.append(line)
            continue
        if trimmed.startswith(out_marker):
            include = False
            continue
        if trimmed.startswith(in_marker):
            include = True
            continue
        # ordinary comment, or excluded text
    return "\n".join(kept)


def strip_comment_annotations(
    text: str, line_prefix: str, block_prefix: str, block_suffix: str
) -> str:
    """Remove line comments and block comments; block delimiters sit on their own lines"""
    include = True

    kept = []
    for line in text.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith(line_prefix):
            continue
        if trimmed.endswith(block_suffix):
            include = True
            continue
        if trimmed.startswith(block_prefix):
            include = False
            continue
        if include:
            kept.append(line)
    return "\n".join(kept)


def strip_annotations(text: str, dialect: Dialect, comments: CommentConfig) -> str:
    """Strip author annotations using the variant the dialect selects"""
    if Dialect(dialect) == Dialect.MARKER:
        return strip_marker_annotations(text, comments.comment_prefix)
    return strip_comment_annotations(
        text,
        comments.line_comment_prefix,
        comments.block_comment_prefix,
        comments.block_comment_suffix,
    )
