from codecollector.core import NON_TEXT_FILE, UNREADABLE_FILE, format_buffer


def test_hello_rs_section_layout(tmp_path):
    (tmp_path / "hello.rs").write_text("fn main() {}", encoding="utf-8")

    out = format_buffer(tmp_path, ["hello.rs"])

    assert out.text == "// hello.rs\n\nfn main() {}\n\n"
    assert out.copied == ["hello.rs"]
    assert out.warnings == []


def test_sections_keep_given_order_and_posix_paths(tmp_path):
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "mod.py").write_text("x = 1\n", encoding="utf-8")
    (tmp_path / "a.go").write_text("package a\n", encoding="utf-8")

    out = format_buffer(tmp_path, ["pkg/mod.py", "a.go"])

    assert out.text == "# pkg/mod.py\n\nx = 1\n\n\n// a.go\n\npackage a\n\n\n"
    assert out.copied == ["pkg/mod.py", "a.go"]


def test_block_comment_header(tmp_path):
    (tmp_path / "index.html").write_text("<p>hi</p>", encoding="utf-8")

    out = format_buffer(tmp_path, ["index.html"])

    assert out.text.startswith("<!-- index.html -->\n\n<p>hi</p>")


def test_non_text_file_is_skipped_with_warning(tmp_path):
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00\x80binary")
    (tmp_path / "ok.py").write_text("pass\n", encoding="utf-8")

    out = format_buffer(tmp_path, ["blob.bin", "ok.py"])

    assert out.copied == ["ok.py"]
    assert "blob.bin" not in out.text
    assert [(w.kind, w.path) for w in out.warnings] == [(NON_TEXT_FILE, "blob.bin")]


def test_missing_file_is_skipped_with_warning(tmp_path):
    (tmp_path / "ok.py").write_text("pass\n", encoding="utf-8")

    out = format_buffer(tmp_path, ["gone.py", "ok.py"])

    assert out.copied == ["ok.py"]
    assert [(w.kind, w.path) for w in out.warnings] == [(UNREADABLE_FILE, "gone.py")]


def test_content_is_copied_verbatim(tmp_path):
    raw = "line one\r\nline two\n\n  indented\t\n"
    (tmp_path / "notes.txt").write_bytes(raw.encode("utf-8"))

    out = format_buffer(tmp_path, ["notes.txt"])

    assert out.text == "# notes.txt\n\n" + raw + "\n\n"
