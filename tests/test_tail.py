import io

from sixfs.tail import main, tail

LINES = [f"line {i}\n".encode() for i in range(15)]


def test_last_ten_lines():
    assert tail(io.BytesIO(b"".join(LINES)), 10) == LINES[-10:]


def test_fewer_lines_than_requested():
    assert tail(io.BytesIO(b"".join(LINES[:3])), 10) == LINES[:3]


def test_zero_lines():
    assert tail(io.BytesIO(b"".join(LINES)), 0) == []


def test_unterminated_last_line_is_dropped():
    assert tail(io.BytesIO(b"a\nb\nc"), 5) == [b"a\n", b"b\n"]


def test_long_lines_survive():
    long_line = b"z" * 1000 + b"\n"
    assert tail(io.BytesIO(b"short\n" + long_line), 1) == [long_line]


def test_main_with_count(tmp_path, capsysbinary):
    path = tmp_path / "f.txt"
    path.write_bytes(b"".join(LINES))
    assert main(["-3", str(path)]) == 0
    assert capsysbinary.readouterr().out == b"".join(LINES[-3:])


def test_main_default_count(tmp_path, capsysbinary):
    path = tmp_path / "f.txt"
    path.write_bytes(b"".join(LINES))
    assert main([str(path)]) == 0
    assert capsysbinary.readouterr().out == b"".join(LINES[-10:])


def test_main_bare_dash_means_zero(tmp_path, capsysbinary):
    path = tmp_path / "f.txt"
    path.write_bytes(b"".join(LINES))
    assert main(["-", str(path)]) == 0
    assert capsysbinary.readouterr().out == b""


def test_main_invalid_option(capsysbinary):
    assert main(["-x5"]) == 1
    assert capsysbinary.readouterr().out == b"tail: invalid option -- 'x'\n"


def test_main_cannot_open(tmp_path, capsysbinary):
    missing = tmp_path / "missing"
    assert main([str(missing)]) == 1
    assert capsysbinary.readouterr().out == f"tail: cannot open {missing}\n".encode()