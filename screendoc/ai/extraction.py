"""
Structured output extraction for model responses.

Models are asked to answer with one JSON object but routinely wrap it in
prose, leave trailing commas, forget the comma between array elements or
stop mid-object when they hit the output token ceiling. ``extract_json``
recovers the value in three escalating attempts:

1. Parse the span from the first "{" to the last "}" verbatim.
2. Strip trailing separators before a closing bracket or brace and insert
   the missing comma between adjacent objects (outside string literals),
   then parse again.
3. When the open/close counts differ (truncated output), close the arrays
   and objects left open, innermost first, then parse again. For the usual
   object-holding-arrays shape this appends the missing "]" then "}".

Anything else raises ``UnrecoverableStructuredOutput`` carrying the raw
text. The function has no side effects; dumping the raw text for
inspection is left to the caller.
"""

import json
import logging
import re
from typing import Any, Iterator, List, Tuple

from screendoc.core.exceptions import NoStructuredOutput, UnrecoverableStructuredOutput

logger = logging.getLogger("screendoc.ai.extraction")

_TRAILING_SEPARATOR = re.compile(r",(\s*[}\]])")
_ADJACENT_OBJECTS = re.compile(r"\}\s*\{")


def find_json_span(text: str) -> str:
    """
    Return the candidate JSON span of ``text``.

    The span runs from the first "{" to the last "}". When the text has an
    opening brace but no closing brace after it, the output was cut off and
    the span runs to the end of the text so that balancing can close it.
    """
    start = text.find("{")
    if start == -1:
        raise NoStructuredOutput()

    end = text.rfind("}")
    if end < start:
        return text[start:].rstrip()
    return text[start:end + 1]


def _segments(span: str) -> Iterator[Tuple[bool, str]]:
    """
    Split ``span`` into (is_string_literal, text) pieces.

    A literal left open at the end of the span runs to the end.
    """
    start = 0
    in_string = escaped = False
    for i, ch in enumerate(span):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                yield True, span[start:i + 1]
                start = i + 1
        elif ch == '"':
            if i > start:
                yield False, span[start:i]
            in_string = True
            start = i
    if start < len(span):
        yield in_string, span[start:]


def repair_separators(span: str) -> str:
    """
    Remove trailing commas and add missing commas between objects.

    String literals are left as they are.
    """
    parts = []
    for is_literal, text in _segments(span):
        if not is_literal:
            text = _TRAILING_SEPARATOR.sub(r"\1", text)
            text = _ADJACENT_OBJECTS.sub("},\n{", text)
        parts.append(text)
    return "".join(parts)


def delimiter_counts(span: str) -> Tuple[int, int, int, int]:
    """(open braces, close braces, open brackets, close brackets)"""
    return span.count("{"), span.count("}"), span.count("["), span.count("]")


def unclosed_delimiters(span: str) -> List[str]:
    """
    Openers still open at the end of ``span``, outermost first.

    Braces and brackets inside string literals are ignored.
    """
    stack: List[str] = []
    for is_literal, text in _segments(span):
        if is_literal:
            continue
        for ch in text:
            if ch in "{[":
                stack.append(ch)
            elif ch in "}]" and stack:
                stack.pop()
    return stack


def balance_delimiters(span: str) -> str:
    """Close every unterminated array and object, innermost first."""
    closers = {"{": "}", "[": "]"}
    return span + "".join(f"\n{closers[opener]}" for opener in reversed(unclosed_delimiters(span)))


def extract_json(text: str) -> Any:
    """
    Parse the JSON object embedded in a model response.

    Args:
        text: Raw model output

    Returns:
        The parsed value

    Raises:
        NoStructuredOutput: No "{" in the text
        UnrecoverableStructuredOutput: All repair attempts failed
    """
    span = find_json_span(text)

    try:
        return json.loads(span)
    except json.JSONDecodeError:
        logger.warning("Initial JSON parse failed, attempting cleanup...")

    repaired = repair_separators(span)
    attempted = repaired
    try:
        return json.loads(repaired)
    except json.JSONDecodeError as e:
        last_error = e

    open_braces, close_braces, open_brackets, close_brackets = delimiter_counts(repaired)
    if open_braces != close_braces or open_brackets != close_brackets:
        logger.warning(
            f"Incomplete JSON detected - adding missing closures "
            f"(braces: {open_braces}/{close_braces}, brackets: {open_brackets}/{close_brackets})"
        )
        # A cut-off element list usually ends in a dangling comma
        attempted = repair_separators(balance_delimiters(repaired))
        try:
            return json.loads(attempted)
        except json.JSONDecodeError as e:
            last_error = e

    raise UnrecoverableStructuredOutput(
        f"JSON parsing failed: {last_error.msg} at position {last_error.pos}",
        raw_text=text,
        position=last_error.pos,
        attempted_text=attempted,
    )
