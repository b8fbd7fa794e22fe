import pytest

from femsparse.matfiles import (
    FileFormatError,
    csr_main,
    format_values,
    main,
    read_csr_text,
    read_dense_matrix,
    read_vector,
)


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_read_dense_matrix_round_trip(tmp_path):
    path = _write(tmp_path, "a.txt", "2 3\n1 2 3\n4 5 6\n")
    assert read_dense_matrix(path) == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]


def test_read_dense_matrix_bad_header(tmp_path):
    path = _write(tmp_path, "a.txt", "two 3\n")
    with pytest.raises(FileFormatError):
        read_dense_matrix(path)


def test_read_dense_matrix_missing_values(tmp_path):
    path = _write(tmp_path, "a.txt", "2 2\n1 2 3\n")
    with pytest.raises(FileFormatError):
        read_dense_matrix(path)


def test_read_vector_round_trip(tmp_path):
    path = _write(tmp_path, "v.txt", "3\n1.5 -2 7\n")
    assert read_vector(path) == [1.5, -2.0, 7.0]


def test_read_vector_missing_header(tmp_path):
    path = _write(tmp_path, "v.txt", "")
    with pytest.raises(FileFormatError):
        read_vector(path)


def test_read_csr_text_entries(tmp_path):
    path = _write(tmp_path, "m.txt", "3 4\n0 2 3 4\n0 1 0 1\n1 1 -1 -1\n")
    matrix = read_csr_text(path)
    assert matrix.nrows == 3
    assert list(matrix.entries()) == [(0, 0, 1.0), (0, 1, 1.0), (1, 0, -1.0), (2, 1, -1.0)]
    assert matrix.matvec([1.0, 1.0, 1.0]) == [2.0, -1.0, -1.0]


def test_read_csr_text_inconsistent_pointers(tmp_path):
    path = _write(tmp_path, "m.txt", "2 2\n0 1 5\n0 1\n1 1\n")
    with pytest.raises(FileFormatError):
        read_csr_text(path)


def test_format_values():
    assert format_values([1.0, 2.5], "2.2f") == "1.00 2.50"


def test_main_prints_product(tmp_path, capsys):
    matrix = _write(tmp_path, "a.txt", "2 2\n1 0\n0 1\n")
    vector = _write(tmp_path, "v.txt", "2\n3 4\n")
    assert main([str(matrix), str(vector)]) == 0
    out = capsys.readouterr().out.splitlines()
    product = out[out.index("MxV:") + 1:]
    assert [float(line) for line in product] == [3.0, 4.0]


def test_main_usage():
    assert main([]) == 1


def test_main_bad_matrix(tmp_path):
    matrix = _write(tmp_path, "a.txt", "x\n")
    vector = _write(tmp_path, "v.txt", "1\n1\n")
    assert main([str(matrix), str(vector)]) == 2


def test_main_bad_vector(tmp_path):
    matrix = _write(tmp_path, "a.txt", "1 1\n1\n")
    vector = _write(tmp_path, "v.txt", "x\n")
    assert main([str(matrix), str(vector)]) == 3


def test_main_size_mismatch(tmp_path):
    matrix = _write(tmp_path, "a.txt", "1 2\n1 1\n")
    vector = _write(tmp_path, "v.txt", "1\n1\n")
    assert main([str(matrix), str(vector)]) == 4


def test_csr_main_prints_product(tmp_path, capsys):
    matrix = _write(tmp_path, "m.txt", "2 2\n0 1 2\n0 1\n2 3\n")
    vector = _write(tmp_path, "v.txt", "2\n1 1\n")
    assert csr_main([str(matrix), str(vector)]) == 0
    out = capsys.readouterr().out.splitlines()
    product = out[out.index("MxV:") + 1:]
    assert [float(line) for line in product] == [2.0, 3.0]


def test_csr_main_missing_file(tmp_path):
    vector = _write(tmp_path, "v.txt", "1\n1\n")
    assert csr_main([str(tmp_path / "absent.txt"), str(vector)]) == 1