import io
import types

from xv6sim.wc import WordCount, count, main


def test_count_simple():
    assert count(io.BytesIO(b"hello world\n")) == WordCount(1, 2, 12)


def test_format():
    assert WordCount(1, 2, 12).format("f") == "1 2 12 f"


def test_empty():
    assert count(io.BytesIO(b"")) == WordCount(0, 0, 0)


def test_invariants_on_text():
    data = b"the quick\tbrown\r\nfox  jumps\vover\n\nlazy dogs\n"
    result = count(io.BytesIO(data))
    assert result.chars == len(data)
    assert result.lines == data.count(b"\n")
    assert result.words == len(data.split())


def test_word_spanning_chunks():
    data = b"a" * 600
    result = count(io.BytesIO(data))
    assert result.words == 1
    assert result.chars == len(data)


def test_nul_is_not_whitespace():
    data = b"a\0b c"
    assert count(io.BytesIO(data)).words == len(data.split())


def test_main_files(tmp_path, capsys):
    first = tmp_path / "one.txt"
    second = tmp_path / "two.txt"
    first.write_bytes(b"alpha beta\ngamma\n")
    second.write_bytes(b"delta")
    assert main([str(first), str(second)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        count(io.BytesIO(first.read_bytes())).format(str(first)),
        count(io.BytesIO(second.read_bytes())).format(str(second)),
    ]


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "missing"
    assert main([str(missing)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_main_stdin(monkeypatch, capsys):
    data = b"one two\nthree\n"
    monkeypatch.setattr("sys.stdin", types.SimpleNamespace(buffer=io.BytesIO(data)))
    assert main([]) == 0
    assert capsys.readouterr().out == count(io.BytesIO(data)).format("") + "\n"