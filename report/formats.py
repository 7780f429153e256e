"""
Output format selection and validation.
"""
import sys
from typing import List, Optional, Sequence

FORMAT_TEXT = 'text'
FORMAT_CSV = 'csv'
FORMAT_CHART = 'chart'
FORMAT_HTML = 'html'
FORMAT_ALL = 'all'

ALL_FORMATS = [FORMAT_TEXT, FORMAT_CSV, FORMAT_CHART, FORMAT_HTML]
VALID_FORMATS = ALL_FORMATS + [FORMAT_ALL]

# characters refused in file names by Windows or POSIX file systems
PRINTABLE_INVALID_CHARS = '<>:"/\\|?*'
INVALID_FILENAME_CHARS = PRINTABLE_INVALID_CHARS + ''.join(chr(c) for c in range(32))


def _illegal_chars(token: str) -> List[str]:
    return [c for c in token if c in INVALID_FILENAME_CHARS]


def _describe_chars(chars: Sequence[str]) -> str:
    return ' '.join(repr(c) for c in chars)


def normalize_formats(tokens: Optional[Sequence[str]]) -> List[str]:
    """Return the effective list of output formats for the requested tokens.

    No tokens means every format. A token with characters that cannot appear in
    a file name, or any token outside the known vocabulary, prints an error and
    exits the process with status 1.
    """
    if not tokens:
        return list(ALL_FORMATS)

    valid: List[str] = []
    invalid: List[str] = []
    for raw in tokens:
        fmt = raw.strip().lower()
        bad = _illegal_chars(fmt)
        if bad:
            print(f"Format '{fmt}' contains characters that cannot be used in a file name: {_describe_chars(bad)}")
            print(f"Do not use any of these characters in a format name: {_describe_chars(PRINTABLE_INVALID_CHARS)} (and control characters)")
            sys.exit(1)
        if fmt in VALID_FORMATS:
            valid.append(fmt)
        else:
            invalid.append(fmt)

    if invalid:
        print("Invalid output format(s): " + ' '.join(invalid))
        print(f"Valid formats: {', '.join(VALID_FORMATS)}")
        sys.exit(1)

    if FORMAT_ALL in valid:
        return list(ALL_FORMATS)
    return list(dict.fromkeys(valid))
