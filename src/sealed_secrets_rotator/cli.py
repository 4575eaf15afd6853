#!/usr/bin/env python
"""Command-line interface for sealed-secrets-rotator.

This module parses the command line, wires the kubectl and kubeseal
wrappers together and maps precondition failures to a non-zero exit.
Failures of individual SealedSecrets are reported but do not change the
exit status.
"""

import sys

import click
from icecream import ic
from rich.markup import escape

from sealed_secrets_rotator import __version__, console
from sealed_secrets_rotator.cluster import Cluster, find_controller_version, resolve_context
from sealed_secrets_rotator.exceptions import (
    BinaryNotFoundError,
    ClusterConnectionError,
    InventoryError,
    KeyFetchError,
    UnsupportedPlatformError,
)
from sealed_secrets_rotator.host import resolve_kubeseal_binary
from sealed_secrets_rotator.kubeseal import Kubeseal
from sealed_secrets_rotator.models import RotationReport, RotatorConfig
from sealed_secrets_rotator.process import SubprocessRunner
from sealed_secrets_rotator.reporting import ConsoleReporter
from sealed_secrets_rotator.rotation import Rotator

ENVVAR_PREFIX = "SEALED_SECRETS_ROTATOR"
AUTO_VERSION = "auto"


def _resolve_binary(config: RotatorConfig, kubeseal_version: str | None) -> str:
    """Find the kubeseal binary, detecting the controller version if asked to."""
    if kubeseal_version == AUTO_VERSION:
        kubeseal_version = find_controller_version(
            config.controller_name,
            config.controller_namespace,
            context=config.context,
        )
        if not kubeseal_version:
            console.warning("Controller version label not found")
        else:
            console.info(f"Controller version: {console.highlight(kubeseal_version)}")
    return resolve_kubeseal_binary(kubeseal_version)


def run_rotation(config: RotatorConfig, kubeseal_binary: str) -> RotationReport:
    """Rotate every SealedSecret in the cluster.

    Args:
        config: The run configuration.
        kubeseal_binary: Path to the kubeseal binary to use.

    Returns:
        The outcome of every SealedSecret.

    Raises:
        InventoryError: If the SealedSecrets cannot be listed.
        KeyFetchError: If the controller keys cannot be fetched.

    """
    runner = SubprocessRunner()
    cluster = Cluster(runner, context=config.context)
    kubeseal = Kubeseal(
        runner,
        controller_name=config.controller_name,
        controller_namespace=config.controller_namespace,
        context=config.context,
        binary=kubeseal_binary,
    )
    rotator = Rotator(config, cluster, kubeseal, ConsoleReporter())
    ic(rotator)
    return rotator.run()


@click.command(help="Re-encrypt every SealedSecret in the cluster with the controller's current key")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option(
    "--controller-name",
    default="sealed-secrets",
    show_default=True,
    help="Name of the sealed-secrets controller",
)
@click.option(
    "--controller-namespace",
    default="kube-system",
    show_default=True,
    help="Namespace where the sealed-secrets controller is installed",
)
@click.option("--dry-run", is_flag=True, default=False, help="Simulate the rotation without making changes")
@click.option("--verbose", is_flag=True, default=False, help="Show detailed processing information")
@click.option("--context", required=False, help="Kubernetes context to use instead of the current one")
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option(
    "--kubeseal-version",
    required=False,
    help="kubeseal version to download and use, or 'auto' to match the controller",
)
def cli(
    version: bool,
    debug: bool,
    controller_name: str,
    controller_namespace: str,
    dry_run: bool,
    verbose: bool,
    context: str | None,
    select: bool,
    kubeseal_version: str | None,
) -> None:
    """Process CLI arguments and run the rotation.

    Args:
        version: Print version and exit.
        debug: Enable debug output.
        controller_name: Name of the sealed-secrets controller.
        controller_namespace: Namespace of the sealed-secrets controller.
        dry_run: Simulate without mutating the cluster.
        verbose: Narrate per-item progress.
        context: Kubernetes context to use.
        select: Prompt for Kubernetes context selection.
        kubeseal_version: kubeseal version to use, or 'auto'.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        return

    try:
        config = RotatorConfig(
            controller_name=controller_name,
            controller_namespace=controller_namespace,
            dry_run=dry_run,
            verbose=verbose,
            context=resolve_context(select_context=select, context=context),
        )
        ic(config)

        if config.verbose:
            console.section("Starting SealedSecret rotation process")
            console.summary_panel(
                "Rotation Settings",
                {
                    "Controller": f"{config.controller_namespace}/{config.controller_name}",
                    "Context": config.context or "current",
                    "Dry run": str(config.dry_run),
                },
            )

        kubeseal_binary = _resolve_binary(config, kubeseal_version)
        run_rotation(config, kubeseal_binary)
    except ClusterConnectionError as e:
        console.error(f"Cluster connection failed: {escape(str(e))}")
        sys.exit(1)
    except (BinaryNotFoundError, UnsupportedPlatformError) as e:
        console.error(f"Cannot run kubeseal: {escape(str(e))}")
        sys.exit(1)
    except InventoryError as e:
        console.error(f"Error getting SealedSecrets: {escape(str(e))}")
        sys.exit(1)
    except KeyFetchError as e:
        console.error(f"Error fetching controller keys: {escape(str(e))}")
        sys.exit(1)


def main() -> None:
    """Console script entry point."""
    cli(auto_envvar_prefix=ENVVAR_PREFIX)


if __name__ == "__main__":
    main()
