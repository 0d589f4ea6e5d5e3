# -*- encoding: utf-8 -*-
# @File   : consts.py
# @Time   : 2025/08/14 21:06:12
# @Author : Kariko Lin

from enum import Enum


COMMENT_MARKS = ';#'
# same set as C `isspace()`.
WHITESPACE = ' \t\r\n\v\f'
# what the loader trims from keys and values.
BLANKS = ' \t'

DEFAULT_PAIRING = ' = '
# chardet is not that sure about short files.
CODEC_CONFIDENCE = 0.8


class NewLine(str, Enum):
    LF = '\n'
    CR = '\r'
    CRLF = '\r\n'

    @classmethod
    def sniff(cls, tail: str) -> 'NewLine | None':
        """Guess from the last chars written so far."""
        if tail.endswith('\r\n'):
            return cls.CRLF
        if tail.endswith('\r'):
            return cls.CR
        if tail.endswith('\n'):
            return cls.LF
        return None


DEFAULT_NEWLINE = NewLine.LF
