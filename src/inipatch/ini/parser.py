# -*- encoding: utf-8 -*-
# @File   : parser.py
# @Time   : 2025/08/14 22:02:47
# @Author : Kariko Lin

"""Note: saving does **not** regenerate an existing file.

We do writing based on the following consumption:
1. The file on disk is the source of formatting.
Comments, blank lines, spacing, order and line endings stay as they are.

2. Only dirty values are written back, either
    - patched in place (keeping the trailing comment), or
    - appended to the end of their section, or
    - appended as a whole new section at the end of file.

Regeneration only happens if the file does not exist yet,
or if you explicitly ask for it with `overwrite=True`.
"""

import errno
import logging
import re
from os import PathLike
from os.path import exists

from chardet import detect as guess_codec

from .consts import (
    BLANKS,
    CODEC_CONFIDENCE,
    DEFAULT_NEWLINE,
    DEFAULT_PAIRING,
    NewLine
)
from .model import IniConfig, IniSection, IniValue
from .scanner import iter_lines
from ..abstract import FileHandler

__all__ = [
    'IniIOError', 'IniNotFound', 'IniParser',
    'load', 'save', 'render'
]

# chardet names for which we'd rather use a superset.
_CODEC_ALIASES = {
    'ascii': 'utf-8',
    'gb2312': 'gbk',
}
_LINE_BREAK = re.compile(r'\r\n|\r|\n')


class IniIOError(OSError):
    """The INI file could not be read or written."""


class IniNotFound(IniIOError):
    """The INI file does not exist."""


def _is_header(middle: str) -> bool:
    return len(middle) > 1 and middle[0] == '[' and middle[-1] == ']'


def _header_name(middle: str) -> str:
    return middle[1:-1].strip(BLANKS)


class _Patcher:
    """Output buffer of one write.

    Flushed values are only collected here,
    the caller clears their dirty flags once the file is written.
    """

    def __init__(self, original: str, newline: NewLine, pairing: str):
        self._out: list[str] = []
        self._original = original
        self._default = newline
        self._pairing = pairing
        self._endl: str | None = None
        self.flushed: dict[int, IniValue] = {}

    def emit(self, text: str) -> None:
        if text:  # no empty pieces, see `endl`.
            self._out.append(text)

    def getvalue(self) -> str:
        return ''.join(self._out)

    @property
    def endl(self) -> str:
        if self._endl is None:
            found = NewLine.sniff(''.join(self._out[-2:]))
            if found is None and (
                m := _LINE_BREAK.search(self._original)
            ) is not None:
                found = NewLine(m.group())
            if found is None:
                logging.debug(
                    f'No line break to follow, using {self._default!r}.')
                found = self._default
            self._endl = found.value
        return self._endl

    def pending(self, section: IniSection) -> list[tuple[str, IniValue]]:
        return [
            (k, v) for k, v in section.dirty_items()
            if id(v) not in self.flushed
        ]

    def mark(self, attr: IniValue) -> None:
        self.flushed[id(attr)] = attr

    def patch_line(self, section: IniSection, middle: str) -> str:
        key, sep, _ = middle.partition('=')
        if not sep:
            return middle
        attr = section.try_get(key)
        if attr is None or not attr.dirty or id(attr) in self.flushed:
            return middle
        self.mark(attr)
        return f'{key}{sep} {attr.value}'

    def flush(
        self, section: IniSection,
        header: bool = False, everything: bool = False
    ) -> None:
        pairs = section.entries() if everything else self.pending(section)
        if not pairs and not (everything and header):
            return
        # appended text always starts on a line of its own.
        if self._out and NewLine.sniff(self._out[-1]) is None:
            self.emit(self.endl)
        if header:
            self.emit(f'[{section.name}]{self.endl}')
        for key, attr in pairs:
            self.emit(f'{key}{self._pairing}{attr.value}{self.endl}')
            if attr.dirty:
                self.mark(attr)


class IniParser(FileHandler[IniConfig]):
    def __init__(
        self, filename: str | PathLike[str],
        encoding: str | None = None, *,
        newline: str = DEFAULT_NEWLINE,
        pairing: str = DEFAULT_PAIRING
    ) -> None:
        super().__init__(filename)
        self._codec = encoding
        self._newline = NewLine(newline)
        self._pairing = pairing

    @staticmethod
    def _decode(raw: bytes, encoding: str | None = None) -> tuple[str, str]:
        """Decode file bytes, returning the text and the codec used.

        Undecodable bytes are kept as surrogates,
        so encoding back with the same codec gives the very same bytes.
        """
        if encoding is None:
            codec = guess_codec(raw)
            if codec['encoding'] is None \
                    or codec['confidence'] < CODEC_CONFIDENCE:
                codec = {'encoding': 'utf-8'}
            encoding = codec['encoding']
        encoding = _CODEC_ALIASES.get(encoding.lower(), encoding)

        # fallbacks
        try:
            return raw.decode(encoding, 'surrogateescape'), encoding
        except (LookupError, UnicodeDecodeError) as e:
            logging.warning(f'Unable to decode as {encoding}: {e}')
            return raw.decode('utf-8', 'surrogateescape'), 'utf-8'

    def _load_raw(self) -> bytes:
        try:
            with open(self._fn, 'rb') as fp:
                return fp.read()
        except FileNotFoundError as e:
            raise IniNotFound(e.errno, e.strerror, self._fn) from e
        except OSError as e:
            raise IniIOError(e.errno, e.strerror, self._fn) from e

    def _encode(self, text: str, codec: str) -> bytes:
        try:
            return text.encode(codec, 'surrogateescape')
        except (LookupError, UnicodeEncodeError) as e:
            raise IniIOError(errno.EILSEQ, str(e), self._fn) from e

    def _dump_raw(self, data: bytes) -> None:
        try:
            # truncate and rewrite, no temp file.
            with open(self._fn, 'wb') as fp:
                fp.write(data)
        except OSError as e:
            raise IniIOError(e.errno, e.strerror, self._fn) from e

    @staticmethod
    def readstream(buf: str, ins: IniConfig | None = None) -> IniConfig:
        """读取解码好的字符串。

        同一次读取中，重复的键以第一次出现的为准；
        `ins`中已标为“脏”的值*不会*被文件内容覆盖。
        """
        if ins is None:
            ins = IniConfig()
        this_sect = ''
        seen: set[tuple[str, str]] = set()
        for _, middle, _ in iter_lines(buf):
            if not middle:
                continue
            if _is_header(middle):
                this_sect = _header_name(middle)
                ins.get_or_create(this_sect)
                continue
            key, sep, val = middle.partition('=')
            if not sep:
                continue
            key = key.strip(BLANKS)
            attr = ins.get_or_create(this_sect).get_or_create(key)
            if attr.dirty or (this_sect, key) in seen:
                continue
            seen.add((this_sect, key))
            attr.value = val.lstrip(BLANKS)
        return ins

    def read(
        self, ins: IniConfig | None = None, *, strict: bool = False
    ) -> IniConfig:
        """读取`IniParser`实例指定的文件。

        文件不存在或不可读时，默认记录一条警告并返回空的（或原样的）`ins`，
        异常存于`ins.error`；如需直接处理异常，请设`strict=True`。
        """
        if ins is None:
            ins = IniConfig()
        try:
            raw = self._load_raw()
        except IniIOError as e:
            if strict:
                raise
            logging.warning(f'Unable to read INI, starting empty:\n  {e}')
            ins.error = e
            return ins
        text, ins.encoding = self._decode(raw, self._codec or ins.encoding)
        ins.error = None
        return self.readstream(text, ins)

    def _reconcile(self, original: str, instance: IniConfig) -> _Patcher:
        out = _Patcher(original, self._newline, self._pairing)

        def active(name: str) -> IniSection | None:
            sect = instance.try_get(name)
            # clean sections pass through, no lookups at all.
            if isinstance(sect, IniSection) and out.pending(sect):
                return sect
            return None

        # pairs above the first header belong to section ''.
        this_sect = active('')
        for front, middle, back in iter_lines(original):
            if _is_header(middle):
                if this_sect is not None:
                    out.flush(this_sect)
                this_sect = active(_header_name(middle))
            elif this_sect is not None and middle:
                middle = out.patch_line(this_sect, middle)
            out.emit(front + middle + back)
        if this_sect is not None:
            out.flush(this_sect)

        # never met in the file: brand-new sections.
        for name, sect in instance.items():
            out.flush(sect, header=name != '')
        return out

    def _regenerate(self, instance: IniConfig) -> _Patcher:
        out = _Patcher('', self._newline, self._pairing)
        if '' in instance:
            out.flush(instance[''], everything=True)
        for name, sect in instance.items():
            if name != '':
                out.flush(sect, header=True, everything=True)
        return out

    def patch(self, original: str, instance: IniConfig) -> str:
        """Reconcile `original` text with `instance`.

        Dirty flags are left untouched, see `self.write()`.
        """
        return self._reconcile(original, instance).getvalue()

    def render(self, instance: IniConfig) -> str:
        """Generate the whole file from `instance`, dropping any formatting.

        Dirty flags are left untouched, see `self.write()`.
        """
        return self._regenerate(instance).getvalue()

    def write(
        self, instance: IniConfig, *,
        overwrite: bool = False,
        strict: bool = False
    ) -> bool:
        """保存到 INI 文件。

        注：
        1. 文件已存在时只写回“脏”值，其余内容逐字节保留；
        文件不存在或设了`overwrite=True`时，则按内存内容整体生成。
        2. 只有真正写入成功后才会清除“脏”标记。
        3. 读写失败默认记录警告并返回`False`，设`strict=True`则抛出`IniIOError`。
        """
        try:
            if overwrite or not exists(self._fn):
                out = self._regenerate(instance)
                codec = self._codec or instance.encoding or 'utf-8'
                self._dump_raw(self._encode(out.getvalue(), codec))
            else:
                original, codec = self._decode(
                    self._load_raw(), self._codec or instance.encoding)
                out = self._reconcile(original, instance)
                if (text := out.getvalue()) != original:
                    self._dump_raw(self._encode(text, codec))
                else:
                    logging.debug(f'Nothing changed in {self._fn}.')
        except IniIOError as e:
            if strict:
                raise
            logging.warning(f'Unable to save INI:\n  {e}')
            return False

        for attr in out.flushed.values():
            attr.dirty = False
        instance.encoding = codec
        return True

    def __str__(self) -> str:
        return "INI file: " + super().__str__() + f" ({self._codec})"


def load(
    path: str | PathLike[str],
    ins: IniConfig | None = None,
    encoding: str | None = None, *,
    strict: bool = False
) -> IniConfig:
    """Shortcut of `IniParser(path, encoding).read(ins, strict=strict)`."""
    return IniParser(path, encoding).read(ins, strict=strict)


def save(
    path: str | PathLike[str],
    instance: IniConfig,
    encoding: str | None = None, *,
    overwrite: bool = False,
    strict: bool = False
) -> bool:
    """Shortcut of `IniParser(path, encoding).write(instance, ...)`."""
    return IniParser(path, encoding).write(
        instance, overwrite=overwrite, strict=strict)


def render(
    instance: IniConfig, *,
    newline: str = DEFAULT_NEWLINE,
    pairing: str = DEFAULT_PAIRING
) -> str:
    """Whole file text of `instance`, regardless of any original file."""
    return IniParser(
        '', newline=newline, pairing=pairing
    ).render(instance)
