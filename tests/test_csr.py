import struct

import pytest

from femsparse.blas import matvec as dense_matvec
from femsparse.csr import (
    CsrMatrix,
    MatrixReadError,
    main,
    read_ascii_matrix,
    read_binary_matrix,
    read_csr_matrix,
    rows_to_pointers,
)

TRIPLES = [(1, 1, 4.0), (1, 3, -1.0), (2, 2, 2.5), (3, 1, -1.0), (3, 3, 4.0)]


def _example():
    return CsrMatrix(3, 3, [0, 2, 3, 4], [0, 1, 0, 1], [1.0, 1.0, -1.0, -1.0])


def _to_dense(matrix):
    dense = [[0.0] * matrix.ncols for _ in range(matrix.nrows)]
    for row, col, value in matrix.entries():
        dense[row][col] += value
    return dense


def _write_ascii(path, nrows, ncols, triples):
    lines = [f"{nrows} {ncols} {len(triples)}"]
    lines += [f"{r} {c} {v!r}" for r, c, v in triples]
    path.write_text("\n".join(lines) + "\n")


def _write_binary(path, nrows, ncols, triples):
    data = struct.pack("=iii", nrows, ncols, len(triples))
    data += b"".join(struct.pack("=iid", r, c, v) for r, c, v in triples)
    path.write_bytes(data)


def test_matvec_example():
    assert _example().matvec([1.0, 1.0, 1.0]) == [2.0, -1.0, -1.0]


def test_matvec_agrees_with_dense():
    matrix = CsrMatrix(3, 3, [0, 2, 3, 5], [0, 2, 1, 0, 2], [4.0, -1.0, 2.5, -1.0, 4.0])
    v = [0.5, -2.0, 3.0]
    assert matrix.matvec(v) == pytest.approx(dense_matvec(_to_dense(matrix), v))


def test_matvec_wrong_length():
    with pytest.raises(ValueError):
        _example().matvec([1.0, 1.0])


def test_nnz():
    assert _example().nnz() == len(_example().coef)


def test_add_doubles_coefficients():
    matrix = _example()
    total = matrix.add(matrix)
    assert total.coef == [2 * c for c in matrix.coef]
    assert total.iat == matrix.iat
    assert total.ja == matrix.ja


def test_add_rejects_other_pattern():
    other = CsrMatrix(3, 3, [0, 1, 2, 4], [0, 1, 0, 1], [1.0, 1.0, 1.0, 1.0])
    with pytest.raises(ValueError):
        _example().add(other)


def test_with_coefficients_keeps_pattern():
    matrix = _example()
    replaced = matrix.with_coefficients([5.0, 6.0, 7.0, 8.0])
    assert replaced.coef == [5.0, 6.0, 7.0, 8.0]
    assert (replaced.iat, replaced.ja) == (matrix.iat, matrix.ja)
    assert matrix.coef == [1.0, 1.0, -1.0, -1.0]


def test_entries_rows_follow_pointers():
    matrix = _example()
    rows = [row for row, _, _ in matrix.entries()]
    assert [rows.count(r) for r in range(3)] == [
        matrix.iat[r + 1] - matrix.iat[r] for r in range(3)
    ]


def test_invalid_pointer_length():
    with pytest.raises(ValueError):
        CsrMatrix(3, 3, [0, 2, 4], [0, 1, 0, 1], [1.0, 1.0, 1.0, 1.0])


def test_rows_to_pointers_example():
    assert rows_to_pointers(3, [1, 1, 2, 3]) == [0, 2, 3, 4]


def test_rows_to_pointers_empty_rows():
    iat = rows_to_pointers(5, [2, 2, 5])
    counts = [iat[r + 1] - iat[r] for r in range(5)]
    assert counts == [[2, 2, 5].count(r + 1) for r in range(5)]
    assert iat[-1] == 3


def test_rows_to_pointers_out_of_range():
    with pytest.raises(ValueError):
        rows_to_pointers(2, [1, 3])


def test_read_ascii(tmp_path):
    path = tmp_path / "m.txt"
    _write_ascii(path, 3, 3, TRIPLES)
    matrix = read_ascii_matrix(path)
    assert (matrix.nrows, matrix.ncols, matrix.nnz()) == (3, 3, len(TRIPLES))
    assert list(matrix.entries()) == [(r - 1, c - 1, v) for r, c, v in TRIPLES]


def test_binary_and_ascii_agree(tmp_path):
    text_path = tmp_path / "m.txt"
    bin_path = tmp_path / "m.bin"
    _write_ascii(text_path, 3, 3, TRIPLES)
    _write_binary(bin_path, 3, 3, TRIPLES)
    assert read_binary_matrix(bin_path) == read_ascii_matrix(text_path)
    assert read_csr_matrix(bin_path, binary=True) == read_csr_matrix(text_path, binary=False)


def test_ascii_missing_file(tmp_path):
    with pytest.raises(MatrixReadError) as info:
        read_ascii_matrix(tmp_path / "absent.txt")
    assert info.value.code == -1


def test_ascii_bad_header(tmp_path):
    path = tmp_path / "m.txt"
    path.write_text("3 x\n")
    with pytest.raises(MatrixReadError) as info:
        read_ascii_matrix(path)
    assert info.value.code == -2


def test_ascii_truncated_entries(tmp_path):
    path = tmp_path / "m.txt"
    path.write_text("3 3 2\n1 1 1.0\n")
    with pytest.raises(MatrixReadError) as info:
        read_ascii_matrix(path)
    assert info.value.code == 2


def test_binary_short_header(tmp_path):
    path = tmp_path / "m.bin"
    path.write_bytes(b"\x01\x00")
    with pytest.raises(MatrixReadError) as info:
        read_binary_matrix(path)
    assert info.value.code == -2


def test_binary_truncated_entries(tmp_path):
    path = tmp_path / "m.bin"
    _write_binary(path, 3, 3, TRIPLES)
    path.write_bytes(path.read_bytes()[:-4])
    with pytest.raises(MatrixReadError) as info:
        read_binary_matrix(path)
    assert info.value.code == len(TRIPLES)


def test_main_reports_time(tmp_path, capsys):
    path = tmp_path / "m.txt"
    _write_ascii(path, 3, 3, TRIPLES)
    assert main([str(path), "2"]) == 0
    out = capsys.readouterr().out
    assert "time taken" in out
    assert "Matrix rows 3 columns 3 nterm 5" in out


def test_main_wrong_arguments(capsys):
    assert main(["only_one"]) == 1
    assert "usage" in capsys.readouterr().out