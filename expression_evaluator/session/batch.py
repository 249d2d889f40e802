"""Evaluate every line of a text file or archive in one calculator session."""
from pathlib import Path
import tarfile
import tempfile
from typing import Callable, Dict, List, Optional
import zipfile

import py7zr
from pydantic import BaseModel, ConfigDict, Field, FilePath

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.errors import ExpressionError
from expression_evaluator.common.logger import logger
from expression_evaluator.common.models import EvaluationRequest, EvaluationResult
from expression_evaluator.session.calculator import Calculator


def _expressions_member(names: List[str], path: Path) -> str:
    """Pick the expressions file of an archive: the first .txt member in name order."""
    candidates = sorted(name for name in names if name.endswith(".txt"))
    if not candidates:
        raise ValueError(f"📄❌ No .txt file found in {path.name}")
    return candidates[0]


def _read_zip(path: Path) -> str:
    with zipfile.ZipFile(path) as archive:
        member = _expressions_member(archive.namelist(), path)
        return archive.read(member).decode("utf-8")


def _read_tar_xz(path: Path) -> str:
    with tarfile.open(path, "r:xz") as archive:
        member = _expressions_member([m.name for m in archive.getmembers() if m.isfile()], path)
        return archive.extractfile(member).read().decode("utf-8")


def _read_7z(path: Path) -> str:
    # py7zr only extracts to disk
    with py7zr.SevenZipFile(path, mode="r") as archive, tempfile.TemporaryDirectory() as tmpdir:
        member = _expressions_member(archive.getnames(), path)
        archive.extract(path=tmpdir, targets=[member])
        return (Path(tmpdir) / member).read_text(encoding="utf-8")


ARCHIVE_READERS: Dict[str, Callable[[Path], str]] = {
    ".zip": _read_zip,
    ".tar.xz": _read_tar_xz,
    ".7z": _read_7z,
}


def read_expressions(path: Path) -> str:
    """
    Read the text of an expressions file.

    A ``.txt`` file is read directly; a ``.zip``, ``.tar.xz`` or ``.7z`` archive
    contributes its first ``.txt`` member.

    :param Path path: Expressions file or archive
    :return: File content
    :rtype: str
    :raises ValueError: If the archive format is unsupported or holds no .txt file
    """
    if path.suffix == ".txt":
        return path.read_text(encoding="utf-8")
    for suffix, reader in ARCHIVE_READERS.items():
        if path.name.endswith(suffix):
            logger.debug(f"📦 Reading {path.name} as {suffix}")
            return reader(path)
    raise ValueError(f"📄❌ Unsupported input format: {''.join(path.suffixes) or path.name}")


class BatchRunner(BaseModel):
    """
    Batch evaluator for expression files.

    The batch runner:
    - reads expressions from a plain text file or an archive
    - evaluates them in order in a single session, so later lines see earlier variables and history
    - writes one result or error line per expression into an output file
    """

    # Settings must not change while a file is being processed
    model_config = ConfigDict(frozen=True)

    settings: EvaluatorSettings = Field(default_factory=EvaluatorSettings, description="Numeric policy of the session")

    def run_file(self, input_file: FilePath, output_file: Path) -> List[EvaluationResult]:
        """
        Evaluate an input file containing expressions and write the results to an output file.

        :param FilePath input_file: Path to the input file or archive
        :param Path output_file: Path where results will be written
        :return: Results in input order
        :rtype: List[EvaluationResult]
        :raises ValueError: If the archive format is unsupported or contains no .txt file
        """
        requests = [
            EvaluationRequest(expression=line.strip(), line_number=number)
            for number, line in enumerate(read_expressions(input_file).splitlines(), start=1)
            if line.strip()
        ]
        return self.run(requests, output_file)

    def run(self, requests: List[EvaluationRequest], output_file: Optional[Path] = None) -> List[EvaluationResult]:
        """
        Evaluate requests in order, continuing after failed lines.

        :param List[EvaluationRequest] requests: Expressions to evaluate
        :param Path output_file: Where to write result lines, if given
        :return: Results in input order
        :rtype: List[EvaluationResult]
        """
        calculator = Calculator(settings=self.settings)
        results: List[EvaluationResult] = []
        logger.info(f"📄🏁 Evaluating {len(requests)} expression(s)")

        for request in requests:
            try:
                value = calculator.evaluate(request.expression)
                result = EvaluationResult(expression=request.expression, line_number=request.line_number,
                                          result=str(value))
            except ExpressionError as exc:
                logger.error(
                    f"🧮❌ Line {request.line_number}: {exc}\n"
                    f"Could not evaluate: {request.expression!r}"
                )
                result = EvaluationResult(expression=request.expression, line_number=request.line_number,
                                          error=str(exc))
            results.append(result)

        if output_file is not None:
            with output_file.open("w", encoding="utf-8") as f_out:
                for result in results:
                    f_out.write(result.to_line() + "\n")
            logger.info(f"📄✅ Results written to {output_file}")
        return results
