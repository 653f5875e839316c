"""
String utility functions
"""

_ESCAPES = {
    "t": "\t",
    "n": "\n",
    "\\": "\\",
    '"': '"',
}


def unescape(text: str) -> str:
    """
    Replace backslash escapes the completion service sometimes leaves in its output

    Recognized: \\t, \\n, \\\\ and \\". Any other escape is kept verbatim, and a
    trailing lone backslash is kept as is.
    """
    out = []
    escaped = False

    for ch in text:
        if escaped:
            if ch in _ESCAPES:
                out.append(_ESCAPES[ch])
            else:
                out.append("\\")
                out.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        else:
            out.append(ch)

    if escaped:
        out.append("\\")

    return "".join(out)
