"""Test class BatchRunner."""
import tarfile
import zipfile

import py7zr
import pytest

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.models import EvaluationRequest
from expression_evaluator.session.batch import BatchRunner, read_expressions


def test_run_file_txt(tmp_path) -> None:
    """Each non-blank line gives one result line; failed lines are reported and skipped over."""
    input_file = tmp_path / "ops.txt"
    output_file = tmp_path / "results.txt"
    input_file.write_text("1+1\n\n1/0\n2*3\n")

    results = BatchRunner().run_file(input_file, output_file)

    lines = output_file.read_text().splitlines()
    assert len(lines) == 3
    assert lines[0] == "1+1 = 2"
    assert lines[1].startswith("1/0 -> ERROR: Division by zero")
    assert lines[2] == "2*3 = 6"
    assert [r.line_number for r in results] == [1, 3, 4]
    assert [r.ok for r in results] == [True, False, True]


def test_lines_share_a_session() -> None:
    """Variables assigned on one line are visible on the next."""
    requests = [
        EvaluationRequest(expression="a->2", line_number=1),
        EvaluationRequest(expression="a*3", line_number=2),
    ]
    results = BatchRunner().run(requests)
    assert [r.to_line() for r in results] == ["a->2 = 2", "a*3 = 6"]


def test_settings_are_applied() -> None:
    """The runner evaluates with its own settings."""
    runner = BatchRunner(settings=EvaluatorSettings(complex_enabled=False))
    results = runner.run([EvaluationRequest(expression="SQRT(0-4)", line_number=1)])
    assert not results[0].ok


def test_read_zip(tmp_path) -> None:
    """A .zip archive contributes its .txt member."""
    txt = tmp_path / "ops.txt"
    txt.write_text("3+3\n")

    zip_path = tmp_path / "ops.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.write(txt, arcname="ops.txt")

    assert read_expressions(zip_path) == "3+3\n"


def test_read_tar_xz(tmp_path) -> None:
    """A .tar.xz archive contributes its .txt member."""
    txt = tmp_path / "ops.txt"
    txt.write_text("4*4\n")

    tar_path = tmp_path / "ops.tar.xz"
    with tarfile.open(tar_path, "w:xz") as tf:
        tf.add(txt, arcname="ops.txt")

    assert read_expressions(tar_path) == "4*4\n"


def test_run_file_7z(tmp_path) -> None:
    """A .7z archive is extracted and its expressions evaluated."""
    txt = tmp_path / "ops.txt"
    txt.write_text("5-2\n")

    archive_path = tmp_path / "ops.7z"
    with py7zr.SevenZipFile(archive_path, "w") as archive:
        archive.write(txt, arcname="ops.txt")

    output_file = tmp_path / "ops_7z_results.txt"
    BatchRunner().run_file(archive_path, output_file)
    assert output_file.read_text() == "5-2 = 3\n"


def test_archive_without_txt(tmp_path) -> None:
    """Reading fails if no .txt file exists in the archive."""
    zip_path = tmp_path / "empty.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.writestr("data.bin", b"\x00\x01")

    with pytest.raises(ValueError):
        read_expressions(zip_path)


def test_unsupported_format(tmp_path) -> None:
    """Ensure unsupported archive formats raise a ValueError."""
    file_path = tmp_path / "ops.rar"
    file_path.write_text("1+1")

    with pytest.raises(ValueError):
        BatchRunner().run_file(file_path, tmp_path / "out.txt")


def test_first_txt_member_in_name_order(tmp_path) -> None:
    """An archive with several text files contributes the first one by name."""
    zip_path = tmp_path / "many.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.writestr("notes.md", "ignored")
        zf.writestr("b.txt", "2+2\n")
        zf.writestr("a.txt", "1+1\n")

    assert read_expressions(zip_path) == "1+1\n"
