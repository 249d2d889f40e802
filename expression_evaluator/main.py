"""
Command line entry point.

This script:
- Evaluates expressions given with ``-e`` in one session and prints the results
- Evaluates an expressions file (or archive) and writes a results file next to it

Examples:
    python -m expression_evaluator.main -e "a->3" -e "a^2"
    python -m expression_evaluator.main resources/operations.7z --precision 50
"""
import argparse
from pathlib import Path
import sys
from typing import List, Optional

from pydantic import BaseModel, Field, FilePath, ValidationError, model_validator

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.errors import ExpressionError
from expression_evaluator.common.logger import logger
from expression_evaluator.session.batch import BatchRunner
from expression_evaluator.session.calculator import Calculator


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    file_path : FilePath
        Path to a file or archive containing one expression per line.
    expressions : List[str]
        Expressions given on the command line.
    """

    file_path: Optional[FilePath] = None
    expressions: List[str] = Field(default_factory=list)
    precision: int = Field(default=34, ge=1, le=10_000)
    fast: bool = False
    real_only: bool = False
    seed: Optional[int] = None

    @model_validator(mode="after")
    def something_to_evaluate(self) -> "CliArgs":
        if self.file_path is None and not self.expressions:
            raise ValueError("Give a file to evaluate or at least one expression with -e")
        return self

    def settings(self) -> EvaluatorSettings:
        return EvaluatorSettings(
            precision=self.precision,
            exact=not self.fast,
            complex_enabled=not self.real_only,
            random_seed=self.seed,
        )


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param argv: Arguments, defaults to ``sys.argv[1:]``
    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = argparse.ArgumentParser(description="Evaluate infix math expressions")

    parser.add_argument("file_path", nargs="?", help="File or archive (.zip, .tar.xz, .7z) with one expression per line")
    parser.add_argument("-e", "--expression", action="append", default=[], dest="expressions",
                        help="Expression to evaluate, may be repeated")
    parser.add_argument("--precision", type=int, default=34, help="Significant decimal digits")
    parser.add_argument("--fast", action="store_true", help="Approximate factorials with the Gamma function")
    parser.add_argument("--real-only", action="store_true", help="Reject complex literals and results")
    parser.add_argument("--seed", type=int, default=None, help="Seed for RND and MRS")

    args = parser.parse_args(argv)

    try:
        return CliArgs(
            file_path=args.file_path,
            expressions=args.expressions,
            precision=args.precision,
            fast=args.fast,
            real_only=args.real_only,
            seed=args.seed,
        )
    except ValidationError as exc:
        parser.error(str(exc))


def build_output_path(input_path: Path) -> Path:
    """
    Construct the results file path based on the input file.

    - Preserves the original folder
    - Replaces dots in extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/operations_short.7z
    output: resources/operations_short_7z_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    stem = input_path.name[:len(input_path.name) - len("".join(input_path.suffixes))]
    suffix_safe = "".join(input_path.suffixes).replace(".", "_")
    return input_path.with_name(f"{stem}{suffix_safe}_results.txt")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Evaluate the requested expressions.

    :return: 0 if every expression succeeded, else 1
    :rtype: int
    """
    cli_args = parse_args(argv)
    settings = cli_args.settings()
    failed = False

    if cli_args.expressions:
        calculator = Calculator(settings=settings)
        for expression in cli_args.expressions:
            try:
                print(f"{expression} = {calculator.evaluate(expression)}")
            except ExpressionError as exc:
                logger.error(f"🧮❌ {exc}")
                print(f"{expression} -> ERROR: {exc}")
                failed = True

    if cli_args.file_path is not None:
        input_path = Path(cli_args.file_path)
        output_path = build_output_path(input_path)
        results = BatchRunner(settings=settings).run_file(input_path, output_path)
        print(f"{len(results)} expression(s) evaluated, results in {output_path}")
        failed = failed or not all(result.ok for result in results)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
