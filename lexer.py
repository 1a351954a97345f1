# lexer.py
# Character classes, parse state and output accumulator for jsonmend
#
# =============================================================================
#  LEXICAL LAYER
# =============================================================================
#
# jsonmend does not tokenize up front: every grammar rule reads the input
# directly through a shared cursor and writes straight into an output buffer.
# This module holds the pieces all rules share:
#
# 1. Character classes - static tables and compiled patterns, never mutated.
# 2. ParseState - input text, cursor and output for a single repair call.
# 3. OutputBuffer - append-mostly text accumulator with the handful of
#    non-append edits the repairs need (truncate, insert before trailing
#    whitespace, strip last occurrence).
# 4. Whitespace and comment skipping.
#
# Reads past the end of the input yield "" and no class below contains "",
# so predicates can be applied at end of input without bounds checks.
# =============================================================================

import re
from typing import List

# ---------------------------------------------------------------------------
# CHARACTER CLASSES
# ---------------------------------------------------------------------------
DIGITS      = frozenset("0123456789")
HEX_DIGITS  = frozenset("0123456789abcdefABCDEF")
WHITESPACE  = frozenset(" \n\t\r")
WHITESPACE_EXCEPT_NEWLINE = frozenset(" \t\r")

# Unicode space variants, written to the output as a plain space
SPECIAL_WHITESPACE = frozenset(
    ["\u00a0", "\u202f", "\u205f", "\u3000"]
    + [chr(code) for code in range(0x2000, 0x200B)]
)

DELIMITERS          = frozenset(",:[]/{}()\n+")
UNQUOTED_DELIMITERS = frozenset(",[]/{}\n+")
BRACKETS            = frozenset("{}[]")

DOUBLE_QUOTE_LIKE = frozenset('"\u201c\u201d')
SINGLE_QUOTE_LIKE = frozenset("'\u2018\u2019`\u00b4")
QUOTES            = DOUBLE_QUOTE_LIKE | SINGLE_QUOTE_LIKE

# Raw control character -> canonical JSON escape
CONTROL_CHARACTERS = {
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Escape letters copied through verbatim; \u is handled by the string parser
ESCAPE_CHARACTERS = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_START_OF_VALUE_RE      = re.compile(r"[\[{\w-]")
_FUNCTION_NAME_START_RE = re.compile(r"[a-zA-Z_$]")
_FUNCTION_NAME_CHAR_RE  = re.compile(r"[a-zA-Z_$0-9]")
_URL_START_RE           = re.compile(r"(?:http|https|ftp|mailto|file|data|irc)://")
_URL_CHARS              = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "-._~:/?#@!$&'()*+;="
)
_COMMA_OR_NEWLINE_END_RE = re.compile(r"[,\n][ \t\r]*\Z")


# ---------------------------------------------------------------------------
# PREDICATES
# ---------------------------------------------------------------------------
def is_digit(ch: str) -> bool:
    return ch in DIGITS

def is_hex(ch: str) -> bool:
    return ch in HEX_DIGITS

def is_whitespace(ch: str) -> bool:
    return ch in WHITESPACE

def is_special_whitespace(ch: str) -> bool:
    return ch in SPECIAL_WHITESPACE

def is_delimiter(ch: str) -> bool:
    return ch in DELIMITERS

def is_unquoted_string_delimiter(ch: str) -> bool:
    return ch in UNQUOTED_DELIMITERS

def is_control_character(ch: str) -> bool:
    return ch in CONTROL_CHARACTERS

def is_valid_string_character(ch: str) -> bool:
    return ch != "" and ord(ch) >= 0x20

def is_quote(ch: str) -> bool:
    return ch in QUOTES

def is_double_quote_like(ch: str) -> bool:
    return ch in DOUBLE_QUOTE_LIKE

def is_double_quote(ch: str) -> bool:
    return ch == '"'

def is_single_quote_like(ch: str) -> bool:
    return ch in SINGLE_QUOTE_LIKE

def is_single_quote(ch: str) -> bool:
    return ch == "'"

def is_start_of_value(ch: str) -> bool:
    """True when ``ch`` can open a value: bracket, brace, word char, minus or any quote."""
    return ch != "" and (_START_OF_VALUE_RE.fullmatch(ch) is not None or ch in QUOTES)

def is_function_name_start(ch: str) -> bool:
    return ch != "" and _FUNCTION_NAME_START_RE.fullmatch(ch) is not None

def is_function_name_char(ch: str) -> bool:
    return ch != "" and _FUNCTION_NAME_CHAR_RE.fullmatch(ch) is not None

def is_url_start(text: str) -> bool:
    """True when ``text`` is exactly a known scheme followed by ``://``."""
    return _URL_START_RE.fullmatch(text) is not None

def is_url_char(ch: str) -> bool:
    return ch in _URL_CHARS

def end_quote_matcher(opening: str):
    """
    Pick the closing-quote test for an opening quote.

    A strict double quote closes only on a strict double quote, a strict
    single quote only on a strict single quote. Other single-quote-like
    openers accept any single-quote-like closer, and other double-quote-like
    openers any double-quote-like closer.
    """
    if is_double_quote(opening):
        return is_double_quote
    if is_single_quote(opening):
        return is_single_quote
    if is_single_quote_like(opening):
        return is_single_quote_like
    return is_double_quote_like

def insert_before_last_whitespace(text: str, insert: str) -> str:
    stripped = text.rstrip(" \n\t\r")
    return stripped + insert + text[len(stripped):]


# ---------------------------------------------------------------------------
# OUTPUT ACCUMULATOR
# ---------------------------------------------------------------------------
class OutputBuffer:
    """
    Repaired text built from appended chunks.

    The chunk list keeps appends cheap and lets ``truncate`` drop the tail
    without copying the retained prefix, so restoring a checkpoint costs only
    what is thrown away. The rarer edits that reach into the middle of the
    text collapse the chunks into one string first.
    """
    def __init__(self):
        self._parts: List[str] = []
        self._length = 0

    def __len__(self) -> int:
        return self._length

    def __str__(self) -> str:
        return self.getvalue()

    def getvalue(self) -> str:
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._length += len(text)

    def truncate(self, length: int) -> None:
        """Drop everything after ``length``. Used to restore a checkpoint."""
        while self._length > length:
            last = self._parts.pop()
            self._length -= len(last)
            if self._length < length:
                keep = length - self._length
                self._parts.append(last[:keep])
                self._length += keep

    def insert_before_last_whitespace(self, text: str) -> None:
        """Insert ``text`` ahead of any whitespace the output currently ends with."""
        tail: List[str] = []
        while self._parts:
            last = self._parts.pop()
            stripped = last.rstrip(" \n\t\r")
            tail.insert(0, last[len(stripped):])
            if stripped:
                self._parts.append(stripped)
                break
        self._parts.append(text)
        self._parts.extend(part for part in tail if part)
        self._length += len(text)

    def strip_last_occurrence(self, text: str, strip_remaining: bool = False) -> None:
        """
        Remove the last occurrence of ``text``. With ``strip_remaining`` the
        output after that occurrence is dropped as well.
        """
        value = self.getvalue()
        index = value.rfind(text)
        if index == -1:
            return
        if strip_remaining:
            value = value[:index]
        else:
            value = value[:index] + value[index + len(text):]
        self._reset(value)

    def remove_at(self, index: int, count: int) -> None:
        value = self.getvalue()
        self._reset(value[:index] + value[index + count:])

    def wrap(self, prefix: str, suffix: str) -> None:
        self._parts.insert(0, prefix)
        self._parts.append(suffix)
        self._length += len(prefix) + len(suffix)

    def ends_with_comma_or_newline(self) -> bool:
        """True when the output ends with ``,`` or a newline plus optional blanks."""
        return _COMMA_OR_NEWLINE_END_RE.search(self.getvalue()) is not None

    def _reset(self, value: str) -> None:
        self._parts = [value] if value else []
        self._length = len(value)


# ---------------------------------------------------------------------------
# PARSE STATE
# ---------------------------------------------------------------------------
class ParseState:
    """
    Everything one repair call mutates: the input, the cursor ``i`` and the
    output. A fresh instance is created per call and never shared.
    """
    def __init__(self, text: str, max_depth: int):
        self.text = text
        self.length = len(text)
        self.i = 0
        self.output = OutputBuffer()
        self.depth = 0
        self.max_depth = max_depth

    def char(self, offset: int = 0) -> str:
        """Character at ``i + offset``, or "" outside the input."""
        index = self.i + offset
        if 0 <= index < self.length:
            return self.text[index]
        return ""

    def char_at(self, index: int) -> str:
        if 0 <= index < self.length:
            return self.text[index]
        return ""

    def at_end(self) -> bool:
        return self.i >= self.length

    def checkpoint(self):
        return self.i, len(self.output)

    def restore(self, checkpoint) -> None:
        self.i, out_len = checkpoint
        self.output.truncate(out_len)

    def prev_non_whitespace_index(self, start: int) -> int:
        prev = start
        while prev > 0 and is_whitespace(self.char_at(prev)):
            prev -= 1
        return prev


# ---------------------------------------------------------------------------
# CHARACTER CONSUMERS
# ---------------------------------------------------------------------------
def parse_character(st: ParseState, ch: str) -> bool:
    """Consume ``ch`` and copy it to the output."""
    if st.char() == ch:
        st.output.append(ch)
        st.i += 1
        return True
    return False

def skip_character(st: ParseState, ch: str) -> bool:
    """Consume ``ch`` without writing it."""
    if st.char() == ch:
        st.i += 1
        return True
    return False


# ---------------------------------------------------------------------------
# WHITESPACE AND COMMENTS
# ---------------------------------------------------------------------------
def _parse_whitespace(st: ParseState, skip_newline: bool) -> bool:
    accepted = WHITESPACE if skip_newline else WHITESPACE_EXCEPT_NEWLINE
    start = st.i
    chunk = []
    while st.i < st.length:
        ch = st.text[st.i]
        if ch in accepted:
            chunk.append(ch)
        elif ch in SPECIAL_WHITESPACE:
            chunk.append(" ")
        else:
            break
        st.i += 1
    if st.i > start:
        st.output.append("".join(chunk))
        return True
    return False

def _parse_comment(st: ParseState) -> bool:
    if st.char() != "/":
        return False
    nxt = st.char(1)
    if nxt == "*":
        end = st.text.find("*/", st.i + 2)
        st.i = st.length if end == -1 else end + 2
        return True
    if nxt == "/":
        end = st.text.find("\n", st.i + 2)
        st.i = st.length if end == -1 else end
        return True
    return False

def skip_whitespace_and_comments(st: ParseState, skip_newline: bool = True) -> bool:
    """
    Copy whitespace to the output and drop comments until neither makes
    progress. Returns True when the cursor moved.

    With ``skip_newline=False`` a literal newline stops the scan, which lets
    the string parser peek past a candidate end quote without crossing a
    line boundary.
    """
    start = st.i
    _parse_whitespace(st, skip_newline)
    while _parse_comment(st):
        _parse_whitespace(st, skip_newline)
    return st.i > start

def skip_ellipsis(st: ParseState) -> bool:
    """Drop a ``...`` placeholder (and one trailing comma) inside an array or object."""
    skip_whitespace_and_comments(st)
    if st.char() == "." and st.char(1) == "." and st.char(2) == ".":
        st.i += 3
        skip_whitespace_and_comments(st)
        skip_character(st, ",")
        return True
    return False
