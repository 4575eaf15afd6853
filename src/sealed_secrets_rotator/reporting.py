"""Run narration and the end-of-run summary.

The rotation logic talks to a Reporter rather than to the console directly,
so tests can capture what a run reported.
"""

from typing import Protocol

from rich.markup import escape

from sealed_secrets_rotator import console
from sealed_secrets_rotator.models import RotationReport


class Reporter(Protocol):
    """Sink for the narration of a run."""

    def section(self, title: str) -> None: ...

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ConsoleReporter:
    """Reporter rendering through the shared rich console.

    Messages are plain text and often carry kubectl or kubeseal stderr, so
    they are escaped before reaching rich markup.

    """

    def section(self, title: str) -> None:
        console.section(escape(title))

    def info(self, message: str) -> None:
        console.info(escape(message))

    def success(self, message: str) -> None:
        console.success(escape(message))

    def error(self, message: str) -> None:
        console.error(escape(message))


def print_summary(report: RotationReport, reporter: Reporter, *, dry_run: bool = False) -> None:
    """Report the processed count and the outcome of every item.

    Args:
        report: The outcomes of the run.
        reporter: Where to send the summary.
        dry_run: Whether the run was simulated.

    """
    reporter.section("Rotation Complete")
    reporter.info(f"Total SealedSecrets processed: {report.processed_count}/{len(report)}")

    verb = "would be rotated" if dry_run else "processed"
    for outcome in report.outcomes:
        if outcome.succeeded:
            reporter.success(f"{outcome.ref} {verb}")
        else:
            reporter.error(f"{outcome.ref} failed: {outcome.reason}")

