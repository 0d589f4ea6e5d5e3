# -*- encoding: utf-8 -*-
# @File   : __init__.py
# @Time   : 2025/08/14 20:48:09
# @Author : Kariko Lin

import logging

from .ini import (
    IniConfig, IniSection, IniValue, IniParser,
    IniIOError, IniNotFound, NewLine,
    load, save, render
)

__all__ = [
    'IniConfig', 'IniSection', 'IniValue', 'IniParser',
    'IniIOError', 'IniNotFound', 'NewLine',
    'load', 'save', 'render'
]

logging.basicConfig(level=logging.INFO,
                    format='[%(asctime)s] %(levelname)s: %(message)s')
