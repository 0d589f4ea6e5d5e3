# -*- encoding: utf-8 -*-
# @File   : model.py
# @Time   : 2025/08/14 21:30:05
# @Author : Kariko Lin

"""
Basically INI Structure with dirty tracking.

Values assigned by the caller get marked *dirty*
and only those are written back by `ini.parser.IniParser.write()`.
"""

from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping
from warnings import warn

from .consts import BLANKS


@dataclass
class IniValue:
    value: str = ''
    dirty: bool = False


def _normalize(name: str) -> str:
    return name.strip(BLANKS)


def format_value(value: object) -> str:
    """`True` => `'true'`, anything else goes through `str()`."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


class IniSection(MutableMapping[str, str]):
    """INI 小节字典。

    对外表现为`str: str`的字典，内部则为每个值维护一个`dirty`标记：
    通过`self[key] = val`赋的值均视为“脏”，保存时才会写回文件。

    注意：`del self[key]`仅从内存中删除，*不会*删掉原文件里的那一行。
    """

    def __init__(
        self, section_name: str = '', /,
        pairs: Mapping[str, object] | None = None
    ) -> None:
        self._name = section_name
        self._data: dict[str, IniValue] = {}
        if pairs:
            self.update(pairs)

    @property
    def name(self) -> str:
        return self._name

    def __getitem__(self, key: str) -> str:
        if (attr := self.try_get(key)) is None:
            raise KeyError(key)
        return attr.value

    def __setitem__(self, key: str, value: object) -> None:
        attr = self.get_or_create(key)
        attr.value = format_value(value)
        attr.dirty = True

    def __delitem__(self, key: str) -> None:
        del self._data[_normalize(key)]
        warn(
            f'"{key}" is removed from [{self._name}] in memory only, '
            'saving would keep the original line.')

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _normalize(key) in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __str__(self) -> str:
        return f"[{self._name}]"

    def __repr__(self) -> str:
        return '[%s] { .cnt = %d, .dirty = %s }' % (
            self._name, len(self._data), self.dirty)

    def try_get(self, key: str) -> IniValue | None:
        """Look up without touching the section."""
        return self._data.get(_normalize(key))

    def get_or_create(self, key: str) -> IniValue:
        """Look up, or add an empty *clean* value. Mainly for parsers."""
        return self._data.setdefault(_normalize(key), IniValue())

    @property
    def dirty(self) -> bool:
        # always derived, there is no flag to get out of sync.
        return any(i.dirty for i in self._data.values())

    def dirty_items(self) -> list[tuple[str, IniValue]]:
        return [(k, v) for k, v in self._data.items() if v.dirty]

    def entries(self) -> list[tuple[str, IniValue]]:
        return list(self._data.items())


class IniConfig(MutableMapping[str, IniSection]):
    """INI 文件表示。支持以下形式的小节和键值对：

        ```ini
        key = val  ; 位于任何小节之前的键值对，归入名为 '' 的小节。

        [section]
        key233 = val666  # 注释同样支持 '#'
        ```

    读取请使用`self.get()`，它*不会*为缺失的小节或键创建占位。
    """

    def __init__(self) -> None:
        self.__raw: dict[str, IniSection] = {}
        # codec of the file we were loaded from, reused when saving.
        self.encoding: str | None = None
        # set when loading failed without `strict`.
        self.error: OSError | None = None

    def __getitem__(self, key: str) -> IniSection:
        if (section := self.try_get(key)) is None:
            raise KeyError(key)
        return section

    def __setitem__(
        self,
        key: str,
        value: IniSection | Mapping[str, object]
    ) -> None:
        key = _normalize(key)
        # copy instead of keeping ptr to the external dict.
        self.__raw[key] = IniSection(key, dict(value.items()))

    def __delitem__(self, key: str) -> None:
        del self.__raw[_normalize(key)]
        warn(
            f'[{key}] is removed in memory only, '
            'saving would keep it in the original file.')

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _normalize(key) in self.__raw

    def __len__(self) -> int:
        return len(self.__raw)

    def __iter__(self) -> Iterator[str]:
        return iter(self.__raw)

    def __repr__(self) -> str:
        return 'IniConfig { .sections = %d, .dirty = %s }' % (
            len(self.__raw), self.dirty)

    def try_get(
        self, section: str, key: str | None = None
    ) -> IniSection | IniValue | None:
        """Look up a section, or a value if `key` is given.

        Never creates anything.
        """
        sect = self.__raw.get(_normalize(section))
        if key is None or sect is None:
            return sect
        return sect.try_get(key)

    def get_or_create(self, section: str) -> IniSection:
        """Look up, or add an empty section. Mainly for parsers."""
        section = _normalize(section)
        if section not in self.__raw:
            self.__raw[section] = IniSection(section)
        return self.__raw[section]

    @property
    def dirty(self) -> bool:
        return any(i.dirty for i in self.__raw.values())

    def set(self, section: str, key: str, value: object) -> None:
        """Create or overwrite a value, and mark it for saving."""
        self.get_or_create(section)[key] = value

    def get(  # type: ignore[override]
        self,
        section: str,
        key: str,
        converter: Callable[[str], Any] = str,
        default: Any = None
    ) -> Any:
        """Read a value through `converter`.

        Falls back to `default` when the entry is missing
        or `converter` rejects it. If `default` is not given either,
        a type converter's own default is used, like `int()` => `0`.
        """
        if converter is bool:
            return self.getbool(section, key, default)
        if default is None and isinstance(converter, type):
            default = converter()
        attr = self.try_get(section, key)
        if not isinstance(attr, IniValue):
            return default
        try:
            return converter(attr.value)
        except (TypeError, ValueError):
            return default

    def getint(self, section: str, key: str, default: int = 0) -> int:
        return self.get(section, key, int, default)

    def getfloat(
        self, section: str, key: str, default: float = 0.0
    ) -> float:
        return self.get(section, key, float, default)

    # lazy to implement auto converter. just manual.
    def getbool(
        self, section: str, key: str, default: bool | None = None
    ) -> bool:
        attr = self.try_get(section, key)
        if not isinstance(attr, IniValue) or not attr.value:
            return bool(default)
        return attr.value[0].lower() in ('1', 'y', 't')
