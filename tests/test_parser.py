"""Tests for inipatch.ini.parser"""

import pytest

from inipatch import (
    IniConfig,
    IniIOError,
    IniNotFound,
    IniParser,
    load,
    render,
    save,
)

SAMPLE = (
    b"; global settings\n"
    b"name = demo   # inline\n"
    b"\n"
    b"[a]\n"
    b"x = 1  ; keep me\n"
    b"  indented=yes\n"
    b"\n"
    b"[b]   ; second\n"
    b"path = /tmp/some where\n"
)


def _ini(tmp_path, data: bytes, name="conf.ini"):
    path = tmp_path / name
    path.write_bytes(data)
    return path


def test_load_sections_and_values(tmp_path):
    conf = load(_ini(tmp_path, SAMPLE))
    assert conf.get("", "name") == "demo"
    assert conf.get("a", "x") == "1"
    assert conf.get("a", "indented") == "yes"
    assert conf.get("b", "path") == "/tmp/some where"
    assert list(conf) == ["", "a", "b"]
    assert not conf.dirty
    assert conf.error is None


def test_load_first_value_wins(tmp_path):
    conf = load(_ini(tmp_path, b"[a]\nx = 1\nx = 2\n[a]\nx = 3\ny = 4\n"))
    assert conf.get("a", "x") == "1"
    assert conf.get("a", "y") == "4"


def test_load_ignores_malformed_lines(tmp_path):
    conf = load(_ini(tmp_path, b"[a]\njunk\n[broken\nx=1\n"))
    assert dict(conf["a"]) == {"x": "1"}


@pytest.mark.parametrize("data", [
    SAMPLE,
    SAMPLE.replace(b"\n", b"\r\n"),
    SAMPLE.replace(b"\n", b"\r"),
    b"[a]\nx = 1",
    b"[a]\nx = 1\n\n\n",
    b"",
])
def test_round_trip_identity(tmp_path, data):
    path = _ini(tmp_path, data)
    conf = load(path)
    assert save(path, conf)
    assert path.read_bytes() == data


def test_surgical_patch_keeps_comment(tmp_path):
    path = _ini(tmp_path, SAMPLE)
    conf = load(path)
    conf.set("a", "x", "2")
    assert save(path, conf)
    assert path.read_bytes() == SAMPLE.replace(
        b"x = 1  ; keep me", b"x = 2  ; keep me")
    assert not conf.dirty


def test_patch_keeps_original_separator(tmp_path):
    path = _ini(tmp_path, b"[a]\n  indented=yes\n")
    conf = load(path)
    conf.set("a", "indented", "no")
    save(path, conf)
    assert path.read_bytes() == b"[a]\n  indented= no\n"


def test_new_key_appended_to_its_section(tmp_path):
    data = b"[a]\r\nx = 1\r\n\r\n[b]\r\nk = v\r\n"
    path = _ini(tmp_path, data)
    conf = load(path)
    conf.set("a", "y", 9)
    save(path, conf)
    assert path.read_bytes() == (
        b"[a]\r\nx = 1\r\ny = 9\r\n\r\n[b]\r\nk = v\r\n")


def test_new_section_appended_at_end(tmp_path):
    path = _ini(tmp_path, b"[a]\nx = 1\n")
    conf = load(path)
    conf.set("z", "k", "v")
    conf.set("a", "y", "2")
    save(path, conf)
    assert path.read_bytes() == b"[a]\nx = 1\ny = 2\n[z]\nk = v\n"


def test_append_after_missing_trailing_newline(tmp_path):
    path = _ini(tmp_path, b"[a]\r\nx = 1")
    conf = load(path)
    conf.set("a", "y", "2")
    save(path, conf)
    assert path.read_bytes() == b"[a]\r\nx = 1\r\ny = 2\r\n"


def test_new_key_before_first_header(tmp_path):
    path = _ini(tmp_path, b"; top\nk = v\n\n[a]\nx = 1\n")
    conf = load(path)
    conf.set("", "k", "w")
    conf.set("", "n", "m")
    save(path, conf)
    assert path.read_bytes() == b"; top\nk = w\nn = m\n\n[a]\nx = 1\n"


def test_new_key_into_empty_file_uses_default_newline(tmp_path):
    path = _ini(tmp_path, b"")
    conf = load(path)
    conf.set("", "top", "1")
    conf.set("s", "k", "v")
    assert IniParser(path, newline="\r\n").write(conf)
    assert path.read_bytes() == b"top = 1\r\n[s]\r\nk = v\r\n"


def test_dirty_value_wins_over_file(tmp_path):
    path = _ini(tmp_path, b"[a]\nx = file\ny = 2\n")
    conf = IniConfig()
    conf.set("a", "x", "pre")
    load(path, conf)
    assert conf.get("a", "x") == "pre"
    assert conf.get("a", "y") == "2"
    save(path, conf)
    assert path.read_bytes() == b"[a]\nx = pre\ny = 2\n"


def test_get_does_not_leak_into_save(tmp_path):
    path = _ini(tmp_path, SAMPLE)
    conf = load(path)
    assert conf.get("missing", "missing") == ""
    assert conf.getint("a", "missing") == 0
    save(path, conf)
    assert path.read_bytes() == SAMPLE
    assert "missing" not in conf


def test_save_twice_is_idempotent(tmp_path):
    path = _ini(tmp_path, SAMPLE)
    conf = load(path)
    conf.set("a", "x", "2")
    conf.set("a", "new", "1")
    conf.set("c", "k", "v")
    save(path, conf)
    first = path.read_bytes()
    save(path, conf)
    assert path.read_bytes() == first


def test_reload_after_save(tmp_path):
    path = _ini(tmp_path, SAMPLE)
    conf = load(path)
    conf.set("a", "x", 3)
    conf.set("c", "k", "v")
    save(path, conf)
    again = load(path)
    assert again.getint("a", "x") == 3
    assert again.get("c", "k") == "v"
    assert again.get("b", "path") == "/tmp/some where"


def test_clean_section_passes_through(tmp_path):
    data = b"[a]\nx = 1\n[b]\nx = 1\n"
    path = _ini(tmp_path, data)
    conf = load(path)
    conf.set("b", "x", "2")
    save(path, conf)
    assert path.read_bytes() == b"[a]\nx = 1\n[b]\nx = 2\n"


def test_save_new_file_regenerates(tmp_path):
    path = tmp_path / "new.ini"
    conf = IniConfig()
    conf.set("a", "x", 1)
    conf.set("b", "on", True)
    conf.set("", "top", "t")
    assert save(path, conf)
    assert path.read_bytes() == b"top = t\n[a]\nx = 1\n[b]\non = true\n"
    assert not conf.dirty


def test_save_overwrite_drops_formatting(tmp_path):
    path = _ini(tmp_path, SAMPLE)
    conf = load(path)
    assert save(path, conf, overwrite=True)
    assert path.read_bytes() == (
        b"name = demo\n"
        b"[a]\nx = 1\nindented = yes\n"
        b"[b]\npath = /tmp/some where\n")


def test_render_and_patch_leave_flags(tmp_path):
    conf = IniConfig()
    conf.set("a", "x", "1")
    assert render(conf, newline="\r\n", pairing="=") == "[a]\r\nx=1\r\n"
    assert IniParser(tmp_path / "x.ini").patch("[a]\nx = 0\n", conf) \
        == "[a]\nx = 1\n"
    assert conf.dirty


def test_load_missing_file(tmp_path):
    conf = load(tmp_path / "nope.ini")
    assert len(conf) == 0
    assert isinstance(conf.error, IniNotFound)
    with pytest.raises(IniNotFound):
        load(tmp_path / "nope.ini", strict=True)


def test_save_failure_keeps_dirty(tmp_path):
    conf = IniConfig()
    conf.set("a", "x", "1")
    # a directory can't be opened as a file
    assert save(tmp_path, conf) is False
    assert conf.dirty
    with pytest.raises(IniIOError):
        save(tmp_path, conf, strict=True)


def test_gbk_file_keeps_encoding(tmp_path):
    text = "; 注释\n[游戏]\n名字 = 旧值 ; 说明\n"
    path = _ini(tmp_path, text.encode("gbk"))
    conf = load(path, encoding="gbk")
    assert conf.get("游戏", "名字") == "旧值"
    conf.set("游戏", "名字", "新值")
    save(path, conf)
    assert path.read_bytes() == text.replace("旧值", "新值").encode("gbk")


def test_unencodable_value_fails_save(tmp_path):
    text = "[游戏]\n名字 = 旧值\n"
    path = _ini(tmp_path, text.encode("gbk"))
    conf = load(path, encoding="gbk")
    conf.set("游戏", "名字", "\U0001f600")
    assert save(path, conf) is False
    assert conf.dirty
    assert path.read_bytes() == text.encode("gbk")
    with pytest.raises(IniIOError):
        save(path, conf, strict=True)


def test_ascii_file_saved_as_utf8(tmp_path):
    path = _ini(tmp_path, b"[a]\nx = 1\n")
    conf = load(path)
    conf.set("a", "x", "中文")
    save(path, conf)
    assert path.read_bytes() == "[a]\nx = 中文\n".encode("utf-8")


def test_undecodable_bytes_survive(tmp_path):
    data = b"[a]\nx = \xff\xfe\n"
    path = _ini(tmp_path, data)
    conf = load(path, encoding="utf-8")
    conf.set("a", "y", "1")
    save(path, conf)
    assert path.read_bytes() == data + b"y = 1\n"
