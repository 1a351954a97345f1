# jsonmend.py
# Repairing recursive-descent parser: JSON-like text in, valid JSON out
#
# =============================================================================
#  PARSER IMPLEMENTATION: RECURSIVE DESCENT WITH REPAIR RULES
# =============================================================================
#
# The grammar is the JSON grammar, read character by character through the
# cursor in lexer.ParseState. Each rule returns True when its construct starts
# at the cursor and writes the repaired text of that construct to the output.
# Where the input deviates from JSON the rule writes what should have been
# there (a quote, a comma, a bracket, null) and carries on.
#
# Layout:
# 1. Value dispatcher - object, array, string, number, keyword, bare word,
#    regex, tried in that order.
# 2. Object and array rules - missing or stray commas, ellipsis placeholders,
#    missing colons, values and closing brackets.
# 3. String rule - the only rule that backtracks. An attempt that finds its
#    end quote in an implausible place restores its checkpoint and the loop
#    in _parse_string retries with a stricter stop policy.
# 4. Leaves - numbers, keywords, bare words and function wrappers, regexes.
# 5. Driver - one root value, newline-delimited values wrapped in an array,
#    redundant closing brackets dropped, leftovers rejected.
#
# Errors are raised only when no repair applies; they carry the 0-based
# offset at which the parser stopped.
# =============================================================================

import argparse
import json
import logging
import os
import re
import sys
from enum import Enum
from typing import List, Optional, Tuple

from lexer import (
    BRACKETS,
    CONTROL_CHARACTERS,
    ESCAPE_CHARACTERS,
    ParseState,
    end_quote_matcher,
    insert_before_last_whitespace,
    is_control_character,
    is_delimiter,
    is_digit,
    is_function_name_char,
    is_function_name_start,
    is_hex,
    is_quote,
    is_start_of_value,
    is_unquoted_string_delimiter,
    is_url_char,
    is_url_start,
    is_valid_string_character,
    is_whitespace,
    parse_character,
    skip_character,
    skip_ellipsis,
    skip_whitespace_and_comments,
)

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# CONSTANTS AND TUNABLES
# ---------------------------------------------------------------------------
DEPTH_LIMIT_DEFAULT   = 256      # nested objects/arrays before giving up
STREAM_THRESH_DEFAULT = 262144   # 256 KiB - CLI reads larger files in chunks
MAX_STRING_ATTEMPTS   = 4        # attempts per string before forcing stop-at-delimiter

_INVALID_LEADING_ZERO = re.compile(r"-?0\d")

_KEYWORDS = (
    ("true", "true"),
    ("false", "false"),
    ("null", "null"),
    # Python literals
    ("True", "true"),
    ("False", "false"),
    ("None", "null"),
)

# ---------------------------------------------------------------------------
# ERRORS
# ---------------------------------------------------------------------------
class JSONRepairError(SyntaxError):
    """
    Raised when the text cannot be reconciled with JSON.

    ``reason`` is the bare message, ``position`` the 0-based offset into the
    input where the parser gave up.
    """
    def __init__(self, reason: str, position: int):
        super().__init__(f"{reason} at offset {position}")
        self.reason = reason
        self.position = position

def _invalid_character(st: ParseState) -> JSONRepairError:
    return JSONRepairError(f"Invalid character {json.dumps(st.char())}", st.i)

def _invalid_unicode_character(st: ParseState) -> JSONRepairError:
    chars = st.text[st.i:st.i + 6]
    return JSONRepairError(f'Invalid unicode character "{chars}"', st.i)

def _unexpected_character(st: ParseState) -> JSONRepairError:
    return JSONRepairError(f"Unexpected character {json.dumps(st.char())}", st.i)

def _unexpected_end(st: ParseState) -> JSONRepairError:
    return JSONRepairError("Unexpected end of json string", st.length)

# ---------------------------------------------------------------------------
# VALUE DISPATCHER
# ---------------------------------------------------------------------------
def _parse_value(st: ParseState) -> bool:
    skip_whitespace_and_comments(st)
    processed = (
        _parse_object(st)
        or _parse_array(st)
        or _parse_string(st)
        or _parse_number(st)
        or _parse_keywords(st)
        or _parse_unquoted_string(st, is_key=False)
        or _parse_regex(st)
    )
    skip_whitespace_and_comments(st)
    return processed

def _enter_nested(st: ParseState) -> None:
    st.depth += 1
    if st.depth > st.max_depth:
        raise JSONRepairError("depth limit exceeded", st.i)

# ---------------------------------------------------------------------------
# OBJECT PARSER
# ---------------------------------------------------------------------------
def _parse_object(st: ParseState) -> bool:
    """
    Parse an object like ``{"key": "value"}``.

    Repairs: leading comma, missing comma between members, ``...``
    placeholders, trailing comma, unquoted keys, missing colon, missing value
    (becomes null) and a missing closing brace.
    """
    if st.char() != "{":
        return False
    _enter_nested(st)
    st.output.append("{")
    st.i += 1
    skip_whitespace_and_comments(st)

    # {, "a": 1}
    if skip_character(st, ","):
        skip_whitespace_and_comments(st)

    initial = True
    while not st.at_end() and st.char() != "}":
        separated = not initial
        if separated:
            if not parse_character(st, ","):
                st.output.insert_before_last_whitespace(",")
            skip_whitespace_and_comments(st)
        else:
            initial = False

        skip_ellipsis(st)

        processed_key = _parse_string(st) or _parse_unquoted_string(st, is_key=True)
        if not processed_key:
            if st.at_end() or st.char() in BRACKETS:
                if separated:
                    # trailing comma
                    st.output.strip_last_occurrence(",")
                break
            raise JSONRepairError("Object key expected", st.i)

        skip_whitespace_and_comments(st)
        processed_colon = parse_character(st, ":")
        truncated = st.at_end()
        if not processed_colon:
            if truncated or is_start_of_value(st.char()):
                st.output.insert_before_last_whitespace(":")
            else:
                raise JSONRepairError("Colon expected", st.i)

        if not _parse_value(st):
            if processed_colon or truncated:
                st.output.append("null")
            else:
                raise JSONRepairError("Colon expected", st.i)

    if st.char() == "}":
        st.output.append("}")
        st.i += 1
    else:
        st.output.insert_before_last_whitespace("}")
    st.depth -= 1
    return True

# ---------------------------------------------------------------------------
# ARRAY PARSER
# ---------------------------------------------------------------------------
def _parse_array(st: ParseState) -> bool:
    """Parse an array like ``[1, "two", 3]``, with the same repairs as objects."""
    if st.char() != "[":
        return False
    _enter_nested(st)
    st.output.append("[")
    st.i += 1
    skip_whitespace_and_comments(st)

    # [,1,2]
    if skip_character(st, ","):
        skip_whitespace_and_comments(st)

    initial = True
    while not st.at_end() and st.char() != "]":
        separated = not initial
        if separated:
            if not parse_character(st, ","):
                st.output.insert_before_last_whitespace(",")
        else:
            initial = False

        skip_ellipsis(st)

        if not _parse_value(st):
            if separated:
                # trailing comma
                st.output.strip_last_occurrence(",")
            break

    if st.char() == "]":
        st.output.append("]")
        st.i += 1
    else:
        st.output.insert_before_last_whitespace("]")
    st.depth -= 1
    return True

# ---------------------------------------------------------------------------
# STRING PARSER
# ---------------------------------------------------------------------------
class StopPolicy(Enum):
    """How a string attempt decides where the string ends."""
    NORMAL            = "normal"             # at a plausible matching end quote
    STOP_AT_DELIMITER = "stop-at-delimiter"  # at the first unquoted delimiter
    STOP_AT_INDEX     = "stop-at-index"      # at an offset found by an earlier attempt

_Retry = Tuple[StopPolicy, int]

def _parse_string(st: ParseState, merge: bool = True) -> bool:
    """
    Parse a quoted string, normalizing any quote style to double quotes.

    The first attempt trusts the matching end quote. When the text after that
    quote cannot follow a string, the attempt rolls back to its checkpoint and
    the string is parsed again, stopping either at the first delimiter or at
    the comma an earlier attempt identified. With ``merge`` off a following
    ``+`` is left to the caller. A stray backslash in front of the
    opening quote switches on skipping of one backslash after each character
    for the whole string, which undoes one level of escaping.
    """
    skip_escape_chars = st.char() == "\\"
    if skip_escape_chars:
        if not is_quote(st.char(1)):
            return False
        st.i += 1
    if not is_quote(st.char()):
        return False

    policy, stop_index = StopPolicy.NORMAL, -1
    attempts = 0
    while True:
        attempts += 1
        if attempts >= MAX_STRING_ATTEMPTS:
            policy = StopPolicy.STOP_AT_DELIMITER
        retry = _scan_string(st, skip_escape_chars, policy, stop_index, merge)
        if retry is None:
            return True
        policy, stop_index = retry
        log.debug("string at offset %d: retrying with policy %s", st.i, policy.value)

def _scan_string(st: ParseState, skip_escape_chars: bool, policy: StopPolicy,
                 stop_index: int, merge: bool) -> Optional[_Retry]:
    """
    One attempt at the string whose opening quote is under the cursor.

    Returns None once the string has been written to the output, or the
    policy for the next attempt after restoring the checkpoint.
    """
    stop_at_delimiter = policy is StopPolicy.STOP_AT_DELIMITER
    is_end_quote = end_quote_matcher(st.char())
    checkpoint = st.checkpoint()
    i_before, o_before = checkpoint

    literal = '"'
    st.i += 1

    while True:
        if st.at_end():
            # missing end quote
            i_prev = st.prev_non_whitespace_index(st.i - 1)
            if not stop_at_delimiter and is_delimiter(st.char_at(i_prev)):
                # ["hello] - the end quote belongs before the delimiter
                st.restore(checkpoint)
                return StopPolicy.STOP_AT_DELIMITER, -1
            st.output.append(insert_before_last_whitespace(literal, '"'))
            return None

        if st.i == stop_index:
            st.output.append(insert_before_last_whitespace(literal, '"'))
            return None

        ch = st.char()
        if is_end_quote(ch):
            # candidate end quote: accept it when what follows can follow a string
            i_quote = st.i
            o_quote = len(literal)
            literal += '"'
            st.i += 1
            st.output.append(literal)

            skip_whitespace_and_comments(st, skip_newline=False)
            nxt = st.char()
            if (stop_at_delimiter or st.at_end() or is_delimiter(nxt)
                    or is_quote(nxt) or is_digit(nxt)):
                if merge:
                    _parse_concatenated_string(st)
                return None

            i_prev = st.prev_non_whitespace_index(i_quote - 1)
            prev = st.char_at(i_prev)
            if prev == ",":
                # {"a":"b,"c":"d"} - the quote opens the next key, the end
                # quote is missing before the comma
                st.restore(checkpoint)
                return StopPolicy.STOP_AT_INDEX, i_prev
            if is_delimiter(prev):
                st.restore(checkpoint)
                return StopPolicy.STOP_AT_DELIMITER, -1

            # unescaped quote inside the string: escape it and continue after it
            st.output.truncate(o_before)
            st.i = i_quote + 1
            literal = literal[:o_quote] + "\\" + literal[o_quote:]

        elif stop_at_delimiter and is_unquoted_string_delimiter(ch):
            # "https://..." would otherwise stop at the first slash
            if st.char(-1) == ":" and is_url_start(st.text[i_before + 1:st.i + 2]):
                while is_url_char(st.char()):
                    literal += st.char()
                    st.i += 1
            st.output.append(insert_before_last_whitespace(literal, '"'))
            if merge:
                _parse_concatenated_string(st)
            return None

        elif ch == "\\":
            nxt = st.char(1)
            if nxt in ESCAPE_CHARACTERS:
                literal += st.text[st.i:st.i + 2]
                st.i += 2
            elif nxt == "u":
                j = 2
                while j < 6 and is_hex(st.char(j)):
                    j += 1
                if j == 6:
                    literal += st.text[st.i:st.i + 6]
                    st.i += 6
                elif st.i + j >= st.length:
                    # truncated \u escape: drop it and end the string here
                    st.i = st.length
                else:
                    raise _invalid_unicode_character(st)
            else:
                # unknown escape: keep the character, drop the backslash
                if is_control_character(nxt):
                    literal += CONTROL_CHARACTERS[nxt]
                elif nxt == "" or is_valid_string_character(nxt):
                    literal += nxt
                else:
                    st.i += 1
                    raise _invalid_character(st)
                st.i = min(st.i + 2, st.length)

        else:
            if ch == '"' and st.char(-1) != "\\":
                literal += '\\"'
            elif is_control_character(ch):
                literal += CONTROL_CHARACTERS[ch]
            elif is_valid_string_character(ch):
                literal += ch
            else:
                raise _invalid_character(st)
            st.i += 1

        if skip_escape_chars:
            skip_character(st, "\\")

# ---------------------------------------------------------------------------
# CONCATENATION MERGER
# ---------------------------------------------------------------------------
def _parse_concatenated_string(st: ParseState) -> bool:
    """Merge ``"hello" + "world"`` into ``"helloworld"``."""
    processed = False
    skip_whitespace_and_comments(st)
    while st.char() == "+":
        processed = True
        st.i += 1
        skip_whitespace_and_comments(st)

        # drop the end quote of the left-hand string
        st.output.strip_last_occurrence('"', strip_remaining=True)
        start = len(st.output)
        # the loop here folds every further operand
        if _parse_string(st, merge=False):
            # drop the start quote of the right-hand string
            st.output.remove_at(start, 1)
        else:
            # the + is not followed by a string: close the left-hand string again
            st.output.insert_before_last_whitespace('"')
    return processed

# ---------------------------------------------------------------------------
# NUMBER PARSER
# ---------------------------------------------------------------------------
def _at_end_of_number(st: ParseState) -> bool:
    ch = st.char()
    return st.at_end() or is_delimiter(ch) or is_whitespace(ch)

def _repair_number_ending_with_numeric_symbol(st: ParseState, start: int) -> bool:
    # 2. -> 2.0, 2e -> 2e0, - -> -0
    st.output.append(st.text[start:st.i] + "0")
    return True

def _skip_digits(st: ParseState) -> bool:
    start = st.i
    while is_digit(st.char()):
        st.i += 1
    return st.i > start

def _parse_number(st: ParseState) -> bool:
    """
    Parse a number like ``-2.4e6``. Numbers cut off after ``-``, ``.`` or the
    exponent get a trailing 0; numbers with leading zeros become strings.
    """
    start = st.i
    if st.char() == "-":
        st.i += 1
        if _at_end_of_number(st):
            return _repair_number_ending_with_numeric_symbol(st, start)
        if not is_digit(st.char()):
            st.i = start
            return False

    # leading zeros are accepted here and quoted below
    if not _skip_digits(st):
        st.i = start
        return False

    if st.char() == ".":
        st.i += 1
        if _at_end_of_number(st):
            return _repair_number_ending_with_numeric_symbol(st, start)
        if not _skip_digits(st):
            st.i = start
            return False

    if st.char() in ("e", "E"):
        st.i += 1
        if st.char() in ("-", "+"):
            st.i += 1
        if _at_end_of_number(st):
            return _repair_number_ending_with_numeric_symbol(st, start)
        if not _skip_digits(st):
            st.i = start
            return False

    if not _at_end_of_number(st):
        # 2024-10-18, 1.2.3 and the like are left to the bare word rule
        st.i = start
        return False

    num = st.text[start:st.i]
    if _INVALID_LEADING_ZERO.match(num):
        st.output.append(f'"{num}"')
    else:
        st.output.append(num)
    return True

# ---------------------------------------------------------------------------
# KEYWORDS, BARE WORDS, REGEX
# ---------------------------------------------------------------------------
def _parse_keywords(st: ParseState) -> bool:
    for name, value in _KEYWORDS:
        if st.text.startswith(name, st.i):
            st.output.append(value)
            st.i += len(name)
            return True
    return False

def _parse_unquoted_string(st: ParseState, is_key: bool) -> bool:
    """
    Quote a bare word, or unwrap a function call around a value.

    ``NumberLong("2")`` and ``callback({...});`` reduce to their argument.
    A bare word runs to the next delimiter or quote (and for keys to the
    next colon), minus trailing whitespace. URLs keep their ``//``.
    """
    start = st.i

    if not is_key and is_function_name_start(st.char()):
        while is_function_name_char(st.char()):
            st.i += 1
        j = st.i
        while is_whitespace(st.char_at(j)):
            j += 1
        if st.char_at(j) == "(":
            st.i = j + 1
            _enter_nested(st)
            skip_whitespace_and_comments(st)
            # foo() and a call cut off before its argument hold null
            if st.char() == ")" or not _parse_value(st):
                st.output.append("null")
            if skip_character(st, ")"):
                skip_character(st, ";")
            st.depth -= 1
            return True
        st.i = start

    while (not st.at_end()
           and not is_unquoted_string_delimiter(st.char())
           and not is_quote(st.char())
           and (not is_key or st.char() != ":")):
        st.i += 1

    if st.char(-1) == ":" and is_url_start(st.text[start:st.i + 2]):
        while is_url_char(st.char()):
            st.i += 1

    if st.i == start:
        return False

    while st.i > start and is_whitespace(st.char(-1)):
        st.i -= 1

    symbol = st.text[start:st.i]
    if symbol == "undefined":
        st.output.append("null")
    else:
        st.output.append(json.dumps(symbol, ensure_ascii=False))

    if st.char() == '"':
        # the start quote was missing, this is the now redundant end quote
        st.i += 1
    return True

def _parse_regex(st: ParseState) -> bool:
    """Quote a regex literal like ``/ab+c/`` as a string."""
    if st.char() != "/":
        return False
    start = st.i
    st.i += 1
    while not st.at_end() and (st.char() != "/" or st.char(-1) == "\\"):
        st.i += 1
    st.i = min(st.i + 1, st.length)
    st.output.append(json.dumps(st.text[start:st.i], ensure_ascii=False))
    return True

# ---------------------------------------------------------------------------
# NEWLINE DELIMITED JSON
# ---------------------------------------------------------------------------
def _parse_newline_delimited_json(st: ParseState) -> None:
    """Join root-level values separated by newlines into one array."""
    log.debug("newline delimited values at offset %d, wrapping in an array", st.i)
    initial = True
    processed_value = True
    while processed_value:
        if not initial:
            if not parse_character(st, ","):
                st.output.insert_before_last_whitespace(",")
        else:
            initial = False
        processed_value = _parse_value(st)

    # the loop always ends on a comma with no value after it
    st.output.strip_last_occurrence(",")
    st.output.wrap("[\n", "\n]")

# ---------------------------------------------------------------------------
# PUBLIC API
# ---------------------------------------------------------------------------
def repair(text: str, *, max_depth: int = DEPTH_LIMIT_DEFAULT) -> str:
    """
    Repair JSON-like text into valid JSON text.

    Valid JSON comes back unchanged. Anything the repair rules cannot
    reconcile raises JSONRepairError with the offset of the problem.
    """
    st = ParseState(text, max_depth)

    if not _parse_value(st):
        raise _unexpected_end(st)

    processed_comma = parse_character(st, ",")
    if processed_comma:
        skip_whitespace_and_comments(st)

    if is_start_of_value(st.char()) and st.output.ends_with_comma_or_newline():
        # another value after the root value: newline delimited JSON
        if not processed_comma:
            st.output.insert_before_last_whitespace(",")
        _parse_newline_delimited_json(st)
    elif processed_comma:
        st.output.strip_last_occurrence(",")

    # redundant closing brackets
    while st.char() in ("}", "]"):
        st.i += 1
        skip_whitespace_and_comments(st)

    if st.at_end():
        return st.output.getvalue()
    raise _unexpected_character(st)

def loads(text: str, *, max_depth: int = DEPTH_LIMIT_DEFAULT):
    """Repair ``text`` and decode it with :func:`json.loads`."""
    return json.loads(repair(text, max_depth=max_depth))

# ---------------------------------------------------------------------------
# CLI ENTRYPOINT
# ---------------------------------------------------------------------------
def _cli(argv: List[str]) -> int:
    """
    Command-line interface.

    Exit codes: 0 on success, 1 on SyntaxError, 2 when --check finds that
    the input needed repair.
    """
    from stream_buffer import CHUNK_SIZE_DEFAULT, StreamRepairer

    ap = argparse.ArgumentParser(description="Repair JSON-like text into valid JSON")
    ap.add_argument("file", help="file to repair, - for stdin")
    ap.add_argument("-o", "--output", help="write the repaired JSON here instead of stdout")
    ap.add_argument("--check", action="store_true", help="only report whether the input needed repair")
    ap.add_argument("--max-depth", type=int, default=DEPTH_LIMIT_DEFAULT)
    ap.add_argument("--streaming-threshold", type=int, default=STREAM_THRESH_DEFAULT)
    ap.add_argument("--chunk-size", type=int, default=CHUNK_SIZE_DEFAULT)
    ap.add_argument("--verbose", action="store_true", help="log repair decisions")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        if args.file == "-":
            data = sys.stdin.read()
            repaired = repair(data, max_depth=args.max_depth)
        elif os.path.getsize(args.file) > args.streaming_threshold:
            repairer = StreamRepairer(args.chunk_size, max_depth=args.max_depth)
            with open(args.file, "r", encoding="utf-8") as fh:
                repairer.feed(fh)
            repaired = repairer.close()
            data = repairer.buffer.substring(0, repairer.buffer.length())
        else:
            with open(args.file, "r", encoding="utf-8") as fh:
                data = fh.read()
            repaired = repair(data, max_depth=args.max_depth)
    except SyntaxError as exc:
        print(f"SyntaxError: {exc}", file=sys.stderr)
        return 1

    if args.check:
        if repaired == data:
            print("OK")
            return 0
        print("REPAIRED")
        return 2

    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(repaired)
    else:
        sys.stdout.write(repaired + "\n")
    return 0

def main() -> None:
    sys.exit(_cli(sys.argv[1:]))

# ---------------------------------------------------------------------------
# MAIN GUARD
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    main()
