"""Console rendering of lint reports.

The layout follows the stock ESLint ``stylish`` formatter: an underlined
file path, one indented line per problem, and a colored summary footer.
"""

from rich.console import Console
from rich.text import Text

from absolute_tools.lint.models import FileResult, LintMessage, LintReport, Severity

HEADER = "-- begin ESLint report --"

# "error" is padded to line up with "warning"
_SEVERITY_LABELS = {
    Severity.ERROR: ("error  ", "red"),
    Severity.WARNING: ("warning", "yellow"),
}


def print_report(report: LintReport, console: Console) -> None:
    """Print the full report: header, every file with problems, footer."""
    console.print(Text(HEADER + "\n", style="bold"), soft_wrap=True)

    for result in report.files_with_problems:
        print_file_result(result, console)

    print_report_footer(report, console)


def print_file_result(result: FileResult, console: Console) -> None:
    """Print the problems found in a single file."""
    console.print(Text(result.file_path, style="underline"), soft_wrap=True)

    if not result.messages:
        console.print("no issues")
    else:
        for message in result.messages:
            console.print(format_message(message), soft_wrap=True)

    # Blank line between files
    console.print()


def format_message(message: LintMessage) -> Text:
    label, color = _SEVERITY_LABELS[message.severity]
    line = "" if message.line is None else str(message.line)
    rule = message.rule_id or ""
    return Text.assemble(
        "   ",
        (label, color),
        " ",
        (line, "bright_black"),
        " ",
        message.message,
        " ",
        (rule, "bright_black"),
    )


def footer_message(report: LintReport) -> tuple[str, str]:
    """Select the summary line and its style for a report."""
    if report.error_count != 0:
        return (
            f"{report.problem_count} problems "
            f"({report.error_count} errors, {report.warning_count} warnings)",
            "bold red",
        )
    if report.warning_count != 0:
        return f"{report.warning_count} warnings", "bold yellow"
    return "no lint issues!", "bold green"


def print_report_footer(report: LintReport, console: Console) -> None:
    text, style = footer_message(report)
    console.print(Text(text, style=style), soft_wrap=True)
