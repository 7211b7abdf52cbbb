"""Test class BatchRunner."""
import io
from pathlib import Path
import tarfile
import zipfile

import py7zr
import pytest

from infix_calculator.cli.batch import BatchRunner, build_output_path, input_format


@pytest.mark.parametrize("name,expected", [
    ("ops.txt", "ops_txt_results.txt"),
    ("ops.zip", "ops_zip_results.txt"),
    ("ops.tar.xz", "ops_tar_xz_results.txt"),
    ("ops.7z", "ops_7z_results.txt"),
])
def test_build_output_path(tmp_path: Path, name: str, expected: str) -> None:
    """The results file sits next to the input with its suffixes folded into the name."""
    assert build_output_path(tmp_path / name) == tmp_path / expected


@pytest.mark.parametrize("name,expected", [
    ("ops.txt", ".txt"),
    ("my.ops.zip", ".zip"),
    ("ops.tar.xz", ".tar.xz"),
    ("ops.7z", ".7z"),
])
def test_input_format(name: str, expected: str) -> None:
    """input_format recognizes plain text and every supported archive."""
    assert input_format(Path(name)) == expected


@pytest.mark.parametrize("name", ["ops.csv", "ops.rar", "ops.xz", "ops"])
def test_input_format_unsupported(name: str) -> None:
    """Other suffixes are rejected with the list of supported formats."""
    with pytest.raises(ValueError, match=r"\.tar\.xz"):
        input_format(Path(name))


def test_read_lines_skips_blank_lines(tmp_path: Path) -> None:
    """Blank lines are dropped, inner spacing is kept."""
    txt = tmp_path / "ops.txt"
    txt.write_text("3 + 4\n\n   \n3  + 4\n")
    assert BatchRunner.read_lines(txt) == ["3 + 4", "3  + 4"]


def test_read_zip(tmp_path: Path) -> None:
    """The first .txt member of a zip archive is read without extracting it."""
    zip_path = tmp_path / "ops.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.writestr("notes/readme.md", "ignored")
        zf.writestr("notes/ops.txt", "3 + 3\n")
        zf.writestr("other.txt", "9 * 9\n")

    assert BatchRunner.read_text(zip_path) == "3 + 3\n"
    assert not (tmp_path / "notes").exists()


def test_read_tar_xz(tmp_path: Path) -> None:
    """A .tar.xz archive is read from its first .txt member."""
    txt = tmp_path / "ops.txt"
    txt.write_text("4 * 4\n")

    tar_path = tmp_path / "ops.tar.xz"
    with tarfile.open(tar_path, "w:xz") as tf:
        tf.add(txt, arcname="data/ops.txt")

    assert BatchRunner.read_text(tar_path) == "4 * 4\n"


def test_read_7z(tmp_path: Path) -> None:
    """A .7z archive is read from its first .txt member."""
    txt = tmp_path / "ops.txt"
    txt.write_text("5 - 2\n")

    archive_path = tmp_path / "ops.7z"
    with py7zr.SevenZipFile(archive_path, "w") as archive:
        archive.write(txt, arcname="ops.txt")

    assert BatchRunner.read_text(archive_path) == "5 - 2\n"


def test_first_txt_member() -> None:
    """Members are scanned in archive order and the first .txt wins."""
    names = ["a.md", "b.txt", "c.txt"]
    assert BatchRunner._first_txt_member(names, Path("ops.zip")) == "b.txt"


def test_read_archive_no_txt(tmp_path: Path) -> None:
    """Reading fails if no .txt file exists in the archive."""
    zip_path = tmp_path / "empty.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.writestr("data.bin", b"\x00\x01")

    with pytest.raises(ValueError, match="No .txt file"):
        BatchRunner.read_text(zip_path)


def test_read_corrupt_archive(tmp_path: Path) -> None:
    """A file that is not really an archive is reported as a ValueError."""
    zip_path = tmp_path / "ops.zip"
    zip_path.write_bytes(b"not a zip at all")

    with pytest.raises(ValueError, match="Corrupt archive"):
        BatchRunner.read_text(zip_path)


def test_read_invalid_utf8(tmp_path: Path) -> None:
    """Text that is not UTF-8 is reported as a ValueError."""
    txt = tmp_path / "ops.txt"
    txt.write_bytes(b"3 + \xff\n")

    with pytest.raises(ValueError):
        BatchRunner.read_text(txt)


def test_read_unsupported_format(tmp_path: Path) -> None:
    """Ensure unsupported formats raise a ValueError."""
    file_path = tmp_path / "ops.rar"
    file_path.write_text("1 + 1")

    with pytest.raises(ValueError):
        BatchRunner.read_text(file_path)


def test_write_results() -> None:
    """Each line is written as a result or an error, and failures do not stop the run."""
    f_out = io.StringIO()
    succeeded = BatchRunner().write_results(["2 + 3", "1 / 0", "4 * 5", "x + 1"], f_out)

    assert succeeded == 2
    assert f_out.getvalue().splitlines() == [
        "2 + 3 = 5.000",
        "1 / 0 -> ERROR: Division by zero is not possible",
        "4 * 5 = 20.000",
        "x + 1 -> ERROR: Invalid characters in operand 'x'",
    ]


def test_run_writes_results_file(tmp_path: Path) -> None:
    """run evaluates an archive and writes the results next to it."""
    txt = tmp_path / "source.txt"
    txt.write_text("2 ^ 3\n\n3 ? 2\n")
    zip_path = tmp_path / "ops.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.write(txt, arcname="ops.txt")

    output_file = BatchRunner().run(zip_path)

    assert output_file == tmp_path / "ops_zip_results.txt"
    assert output_file.read_text().splitlines() == [
        "2 ^ 3 = 8.000",
        "3 ? 2 -> ERROR: Unknown operation ?",
    ]
