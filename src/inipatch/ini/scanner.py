# -*- encoding: utf-8 -*-
# @File   : scanner.py
# @Time   : 2025/08/14 21:11:40
# @Author : Kariko Lin

"""Line scanner shared by the loader and the reconciling writer.

Each physical line gets split into three parts:

    ```ini
    \\n\\n  key = value   ; comment\\n
    ^^^^^^ ^^^^^^^^^^^ ^^^^^^^^^^^^^^^
    front  middle      back
    ```

and `front + middle + back` is always the exact original text,
which is all the writer needs to keep untouched lines byte-identical.
"""

from typing import Iterator

from .consts import COMMENT_MARKS, WHITESPACE


def fetch_line(data: str, pos: int) -> tuple[str, str, str, int]:
    """Scan one line of `data` starting at `pos`.

    Returns `(front, middle, back, eol)`, where `eol` is the index of
    the line's `'\\n'`, or `len(data)` if the buffer ends first.
    Continue scanning from `eol + 1`.

    Only `'\\n'` ends a line. A file using bare `'\\r'` line endings
    is one single line here: it round-trips untouched,
    but none of its keys can be read or patched.
    """
    size = len(data)
    begin = pos
    while pos < size and data[pos] in WHITESPACE:
        pos += 1
    front = data[begin:pos]
    if pos >= size:
        return front, '', '', size

    begin = pos
    end = -1  # where trailing blanks / comment start
    comment = False
    while pos < size and data[pos] != '\n':
        c = data[pos]
        if c in WHITESPACE:
            if end == -1:
                end = pos
        elif c in COMMENT_MARKS:
            if end == -1:
                end = pos
            comment = True
        elif not comment:
            end = -1
        pos += 1

    if end == -1:
        end = pos
    return front, data[begin:end], data[end:pos + 1], pos


def iter_lines(data: str) -> Iterator[tuple[str, str, str]]:
    """Yield `(front, middle, back)` for every line of `data`."""
    pos = 0
    while pos < len(data):
        front, middle, back, pos = fetch_line(data, pos)
        yield front, middle, back
        pos += 1
