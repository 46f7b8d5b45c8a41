"""
Filename derivation for queue entries.

A queue entry's file number is rendered into a filename through a
printf-style pattern holding a single integer conversion (default ``%08d``),
and recovered from a filename with scanf semantics using the same pattern.
"""

import re
from functools import lru_cache
from typing import Optional

from seqfile_queue.exceptions import PatternError


DEFAULT_PATTERN = "%08d"

# printf conversion: flags, width, optional C length modifier, conversion
_CONVERSION_RE = re.compile(
    r"%(?P<flags>[-+ #0]*)(?P<width>\d*)(?P<length>hh|h|ll|l|j|z|t)?(?P<conv>[diuxXo])"
)

_DIGITS = {
    "d": r"[-+]?[0-9]+",
    "u": r"[-+]?[0-9]+",
    "o": r"[-+]?[0-7]+",
    "x": r"[-+]?(?:0[xX])?[0-9a-fA-F]+",
    "X": r"[-+]?(?:0[xX])?[0-9a-fA-F]+",
    "i": r"[-+]?(?:0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)",
}


class NumericPattern:
    """
    A compiled single-integer filename pattern.

    Formatting uses Python %-formatting (C length modifiers are dropped).
    Parsing mirrors sscanf: the literal prefix must match exactly, whitespace
    before the number is skipped, the field width caps the characters
    consumed, and anything after the conversion is ignored.
    """

    def __init__(self, pattern: str, prefix: str, conv: str, width: int, format_str: str):
        self.pattern = pattern
        self.prefix = prefix
        self.conv = conv
        self.width = width
        self._format_str = format_str
        self._number_re = re.compile(_DIGITS[conv])

    def format(self, file_num: int) -> str:
        """Render a file number through the pattern."""
        if isinstance(file_num, bool) or not isinstance(file_num, int):
            raise PatternError(self.pattern, f"cannot format {file_num!r}")
        return self._format_str % file_num

    def parse(self, name: str) -> Optional[int]:
        """
        Extract the file number from a filename.

        Args:
            name: Base filename (no directory component)

        Returns:
            The parsed number, or None if the name does not match
        """
        if not name.startswith(self.prefix):
            return None

        rest = name[len(self.prefix):].lstrip()
        if self.width:
            rest = rest[:self.width]

        match = self._number_re.match(rest)
        if not match:
            return None

        return _to_int(match.group(0), self.conv)

    def __repr__(self) -> str:
        return f"NumericPattern({self.pattern!r})"


def _to_int(text: str, conv: str) -> int:
    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if conv in ("d", "u"):
        value = int(text, 10)
    elif conv == "o":
        value = int(text, 8)
    elif conv in ("x", "X"):
        value = int(text, 16)
    elif text[:2] in ("0x", "0X"):
        value = int(text, 16)
    elif text.startswith("0"):
        value = int(text, 8)
    else:
        value = int(text, 10)

    return sign * value


@lru_cache(maxsize=32)
def compile_pattern(pattern: str) -> NumericPattern:
    """
    Validate and compile a numeric filename pattern.

    Args:
        pattern: printf-style pattern with exactly one integer conversion

    Returns:
        Compiled NumericPattern

    Raises:
        PatternError: If the pattern has zero, several, or non-integer conversions
    """
    if not pattern:
        raise PatternError(pattern, "pattern is empty")

    prefix_parts = []
    format_parts = []
    conversion = None
    pos = 0

    while pos < len(pattern):
        idx = pattern.find("%", pos)
        if idx < 0:
            literal = pattern[pos:]
            pos = len(pattern)
        else:
            literal = pattern[pos:idx]

        if conversion is None:
            prefix_parts.append(literal)
        format_parts.append(literal.replace("%", "%%"))

        if idx < 0:
            break

        if pattern.startswith("%%", idx):
            if conversion is None:
                prefix_parts.append("%")
            format_parts.append("%%")
            pos = idx + 2
            continue

        match = _CONVERSION_RE.match(pattern, idx)
        if not match:
            raise PatternError(pattern, f"unsupported conversion at offset {idx}")
        if conversion is not None:
            raise PatternError(pattern, "more than one conversion")

        if match.group("conv") == "o" and "#" in match.group("flags"):
            raise PatternError(pattern, "alternate form is not supported for octal")
        conversion = match
        format_parts.append(
            f"%{match.group('flags')}{match.group('width')}{match.group('conv')}"
        )
        pos = match.end()

    if conversion is None:
        raise PatternError(pattern, "no integer conversion")

    width = conversion.group("width")
    return NumericPattern(
        pattern=pattern,
        prefix="".join(prefix_parts),
        conv=conversion.group("conv"),
        width=int(width) if width else 0,
        format_str="".join(format_parts),
    )


def name_with_optional_ext(name: str, ext: Optional[str]) -> str:
    """Join a name and extension, adding the dot only for a non-empty extension."""
    if ext:
        return f"{name}.{ext}"
    return name


def matches_extension(name: str, ext: Optional[str]) -> bool:
    """Check a filename against the configured extension (no extension matches all)."""
    if not ext:
        return True
    return name.endswith(f".{ext}")
