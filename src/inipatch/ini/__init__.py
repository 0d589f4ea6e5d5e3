# -*- encoding: utf-8 -*-
# @File   : __init__.py
# @Time   : 2025/08/14 21:02:33
# @Author : Kariko Lin

from .consts import NewLine
from .model import IniValue, IniSection, IniConfig
from .parser import IniParser, IniIOError, IniNotFound, load, save, render
from .scanner import fetch_line, iter_lines
