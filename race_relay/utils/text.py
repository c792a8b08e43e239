# race_relay/utils/text.py
# Text helpers for values that end up in a Google Forms query string
import re
from typing import Optional

_WHITESPACE = re.compile(r"\s")


def plus_escape(text: Optional[str]) -> str:
    """
    Replaces every whitespace character with '+', the form's space encoding.

    Literal '%' and '+' are percent-encoded first so the form does not read a
    name like 'C++' as 'C  '.
    """
    if not text:
        return ""
    escaped = str(text).replace("%", "%25").replace("+", "%2B")
    return _WHITESPACE.sub("+", escaped)
