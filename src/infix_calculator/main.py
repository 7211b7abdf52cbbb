"""
Command-line entrypoint.

Without a file argument, starts the interactive loop:

    $ infix-calculator
    Enter expression: 3 + 4
    Result: 7.000
    Enter expression: quit

With a file argument, evaluates every line of the text file or archive and
writes a results file next to it.

``--repeat N`` computes every expression on N worker processes and prints the
sum of their results instead of a single in-process computation.
"""

import argparse
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, FilePath, ValidationError, field_validator

from infix_calculator.cli.batch import BatchRunner, input_format
from infix_calculator.cli.repl import ReplSession
from infix_calculator.common.evaluator import ExpressionEvaluator
from infix_calculator.common.logger import configure_logging, logger
from infix_calculator.common.registry import OperationRegistry
from infix_calculator.workers.fan_out import FanOutEvaluator


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    file_path : FilePath, optional
        File of expressions to evaluate; the interactive loop runs when omitted.
    repeat : int
        Worker processes per expression; 1 evaluates in-process.
    log_level : str
        Level of the package logger.
    """

    file_path: Optional[FilePath] = None
    repeat: int = Field(default=1, ge=1)
    log_level: LogLevel = "WARNING"

    @field_validator("file_path")
    def file_path_must_be_readable_format(cls, v: Optional[FilePath]) -> Optional[FilePath]:
        """Ensure that the file is plain text or a supported archive."""
        if v is not None:
            input_format(v)
        return v


def build_parser() -> argparse.ArgumentParser:
    """
    Build the command-line parser.

    :return: Argument parser
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="infix-calculator",
        description="Evaluate 'left operator right' arithmetic expressions",
    )

    parser.add_argument(
        "file_path",
        nargs="?",
        default=None,
        help="Text file or archive (.zip, .tar.xz, .7z) with one expression per line",
    )
    parser.add_argument(
        "--repeat",
        type=int,
        default=1,
        help="Compute each expression on this many worker processes and sum the results",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    return parser


def parse_args(
    argv: Optional[List[str]] = None, parser: Optional[argparse.ArgumentParser] = None
) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param argv: Arguments to parse, defaults to ``sys.argv[1:]``
    :param parser: Parser to use, a new one when omitted
    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = parser if parser is not None else build_parser()
    args = parser.parse_args(argv)

    try:
        return CliArgs(file_path=args.file_path, repeat=args.repeat, log_level=args.log_level)
    except ValidationError as exc:
        parser.error(str(exc))


def build_evaluator(
    repeat: int, registry: Optional[OperationRegistry] = None
) -> Union[ExpressionEvaluator, FanOutEvaluator]:
    """
    Build the evaluator matching the requested repetition count.

    :param int repeat: Worker processes per expression, 1 for in-process evaluation
    :param OperationRegistry registry: Operator table, the built-in one when omitted
    :return: Evaluator exposing ``evaluate(line)``
    """
    evaluator = ExpressionEvaluator(registry=registry if registry is not None else OperationRegistry())
    if repeat == 1:
        return evaluator
    return FanOutEvaluator(evaluator=evaluator, repeat=repeat)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main function executed by the ``infix-calculator`` command.
    """
    parser = build_parser()
    cli_args = parse_args(argv, parser)
    configure_logging(cli_args.log_level)
    evaluator = build_evaluator(cli_args.repeat)

    if cli_args.file_path is not None:
        try:
            output_path = BatchRunner(evaluator=evaluator).run(cli_args.file_path)
        except (ValueError, UnicodeDecodeError) as exc:
            # Unreadable archive or text that is not UTF-8
            parser.error(f"cannot read {cli_args.file_path}: {exc}")
        print(f"Results written to {output_path}")
        return

    logger.info("Starting interactive session")
    try:
        ReplSession(evaluator=evaluator).run()
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
