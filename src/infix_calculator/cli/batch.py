"""Evaluate every expression of a text file or archive."""
from contextlib import contextmanager
import lzma
from pathlib import Path
import tarfile
import tempfile
from typing import Callable, ContextManager, Dict, Iterator, List, Sequence, TextIO, Tuple, Union
import zipfile

import py7zr
from pydantic import BaseModel, Field, FilePath

from infix_calculator.common.errors import CalculatorError
from infix_calculator.common.evaluator import ExpressionEvaluator
from infix_calculator.common.logger import logger
from infix_calculator.workers.fan_out import FanOutEvaluator


# An opened archive: its member names and a reader returning one member's bytes
OpenedArchive = Tuple[List[str], Callable[[str], bytes]]
ArchiveOpener = Callable[[Path], ContextManager[OpenedArchive]]


@contextmanager
def _open_zip(path: Path) -> Iterator[OpenedArchive]:
    with zipfile.ZipFile(path, "r") as zf:
        yield [info.filename for info in zf.infolist() if not info.is_dir()], zf.read


@contextmanager
def _open_tar_xz(path: Path) -> Iterator[OpenedArchive]:
    with tarfile.open(path, "r:xz") as tf:
        members: Dict[str, tarfile.TarInfo] = {m.name: m for m in tf.getmembers() if m.isfile()}

        def read(name: str) -> bytes:
            with tf.extractfile(members[name]) as member:
                return member.read()

        yield list(members), read


@contextmanager
def _open_7z(path: Path) -> Iterator[OpenedArchive]:
    with py7zr.SevenZipFile(path, mode="r") as archive:

        def read(name: str) -> bytes:
            # py7zr only extracts to disk, so the member goes through a scratch directory
            with tempfile.TemporaryDirectory() as tmpdir:
                archive.extract(path=tmpdir, targets=[name])
                return (Path(tmpdir) / name).read_bytes()

        yield archive.getnames(), read


ARCHIVE_OPENERS: Dict[str, ArchiveOpener] = {
    ".zip": _open_zip,
    ".tar.xz": _open_tar_xz,
    ".7z": _open_7z,
}

# Every input format the batch runner reads, plain text first
SUPPORTED_SUFFIXES: Tuple[str, ...] = (".txt", *ARCHIVE_OPENERS)


def input_format(path: Path) -> str:
    """
    Return the supported suffix ``path`` ends with.

    :param Path path: Input file path

    :return: One of SUPPORTED_SUFFIXES
    :rtype: str
    :raises ValueError: If the file is neither text nor a supported archive
    """
    for suffix in SUPPORTED_SUFFIXES:
        if path.name.endswith(suffix):
            return suffix
    raise ValueError(
        f"Unsupported input format {path.name!r}, expected one of: {', '.join(SUPPORTED_SUFFIXES)}"
    )


def build_output_path(input_path: Path) -> Path:
    """
    Construct the results file path based on the input file.

    - Preserves the original folder
    - Replaces dots in extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/operations.7z
    output: resources/operations_7z_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    suffixes = "".join(input_path.suffixes)
    suffix_safe = suffixes.replace(".", "_")
    # Strip the stem down to the part before every suffix
    stem = input_path.name[: len(input_path.name) - len(suffixes)]
    return input_path.with_name(f"{stem}{suffix_safe}_results.txt")


class BatchRunner(BaseModel):
    """
    Evaluate the expressions listed in a file, one per line.

    The input file is plain text or an archive (see ARCHIVE_OPENERS) whose
    first .txt member holds the expressions.

    Each non-empty line is evaluated independently; a failing line is reported
    in the output and does not stop the run.
    """

    evaluator: Union[ExpressionEvaluator, FanOutEvaluator] = Field(
        default_factory=ExpressionEvaluator, description="Evaluator used for each line"
    )

    @staticmethod
    def _first_txt_member(names: Sequence[str], archive_path: Path) -> str:
        """Name of the first .txt member of an archive."""
        for name in names:
            if name.endswith(".txt"):
                return name
        raise ValueError(f"No .txt file found in {archive_path.name}")

    @staticmethod
    def read_text(input_file: FilePath) -> str:
        """
        Read the expressions text of a plain text file or of an archive's first .txt member.

        :param FilePath input_file: Path to the input file or archive

        :return: Decoded UTF-8 text
        :rtype: str
        :raises ValueError: If the format is unsupported, the archive is corrupt or holds
            no .txt file, or the text is not valid UTF-8
        """
        suffix: str = input_format(input_file)
        if suffix == ".txt":
            return input_file.read_text(encoding="utf-8")

        try:
            with ARCHIVE_OPENERS[suffix](input_file) as (names, read):
                data: bytes = read(BatchRunner._first_txt_member(names, input_file))
        except (zipfile.BadZipFile, tarfile.TarError, lzma.LZMAError, py7zr.Bad7zFile) as exc:
            raise ValueError(f"Corrupt archive {input_file.name}: {exc}") from exc
        return data.decode("utf-8")

    @staticmethod
    def read_lines(input_file: FilePath) -> List[str]:
        """
        Load the non-empty expression lines of a text file or archive.

        :param FilePath input_file: Path to the input file or archive

        :return: List of non-empty expression lines
        :rtype: List[str]
        """
        content: str = BatchRunner.read_text(input_file)
        # Remove empty lines but keep inner spacing, it is significant to the tokenizer
        return [line for line in content.splitlines() if line.strip()]

    def format_line(self, expression: str) -> Tuple[bool, str]:
        """
        Evaluate one expression and format it as a results file line.

        :param str expression: Expression line

        :return: Tuple of (success flag, ``<expr> = <value>`` or ``<expr> -> ERROR: <message>``)
        :rtype: Tuple[bool, str]
        """
        try:
            result: float = self.evaluator.evaluate(expression)
        except CalculatorError as exc:
            logger.warning("Could not evaluate %r: %s", expression, exc)
            return False, f"{expression} -> ERROR: {exc}"
        except Exception as exc:
            logger.exception("Unexpected failure evaluating %r", expression)
            return False, f"{expression} -> ERROR: {exc}"
        return True, f"{expression} = {result:.3f}"

    def write_results(self, lines: List[str], f_out: TextIO) -> int:
        """
        Evaluate every line and write one result per line to ``f_out``.

        :param list lines: Expression lines
        :param file f_out: Open file handle for writing results

        :return: Number of lines that evaluated successfully
        :rtype: int
        """
        succeeded: int = 0
        for line in lines:
            ok, formatted = self.format_line(line)
            succeeded += ok
            f_out.write(formatted + "\n")
            f_out.flush()
        return succeeded

    def run(self, input_file: FilePath) -> Path:
        """
        Evaluate an input file and write the results next to it.

        :param FilePath input_file: Path to the input file or archive

        :return: Path of the written results file
        :rtype: Path
        """
        output_file: Path = build_output_path(input_file)
        lines: List[str] = self.read_lines(input_file)
        logger.info("Evaluating %d expressions from %s", len(lines), input_file)

        with output_file.open("w", encoding="utf-8") as f_out:
            succeeded = self.write_results(lines, f_out)

        logger.info("%d/%d expressions evaluated, results written to %s", succeeded, len(lines), output_file)
        return output_file
