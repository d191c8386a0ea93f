"""Command-line interface for exporting Kubernetes resources."""

import logging
import sys
from pathlib import Path

import click

from kubeexport import __version__
from kubeexport.cluster import KubectlClient
from kubeexport.config import default_config
from kubeexport.export.config import ExportConfig
from kubeexport.export.engine import ExportEngine, ExportError, ExportResult, resolve_resource_types
from kubeexport.export.loader import load_export_config, validate_config
from kubeexport.observability import get_observability_manager

obs = get_observability_manager()
logger = obs.get_logger("kubeexport.cli")


def print_summary(message: str) -> None:
    """Print a summary message directly to stdout (not as a structured log line)."""
    print(message)  # noqa: T201


def split_type_names(values: tuple[str, ...]) -> list[str]:
    """Flatten repeated and comma-separated resource type options."""
    return [name.strip() for value in values for name in value.split(",") if name.strip()]


def build_export_config(
    base: ExportConfig,
    resource_types: tuple[str, ...] = (),
    output_dir: Path | None = None,
    force: bool = False,
    output_format: str | None = None,
    layout: str | None = None,
    exclude: tuple[str, ...] = (),
    kubeconfig: str | None = None,
    context: str | None = None,
    cluster: str | None = None,
    namespace: str | None = None,
    continue_on_error: bool = False,
) -> ExportConfig:
    """Apply command-line overrides on top of a loaded configuration.

    Only options that were given override the base; the merged result is
    validated again.
    """
    data = base.model_dump()

    output_updates = {"dir": output_dir, "format": output_format, "layout": layout}
    data["output"].update({k: v for k, v in output_updates.items() if v is not None})
    if force:
        data["output"]["force"] = True

    cluster_updates = {
        "kubeconfig": kubeconfig,
        "context": context,
        "cluster": cluster,
        "namespace": namespace,
    }
    data["cluster"].update({k: v for k, v in cluster_updates.items() if v is not None})

    if resource_types:
        data["resource_types"] = list(resource_types)
    if exclude:
        data["excluded_resource_types"] = split_type_names(exclude)
    if continue_on_error:
        data["on_error"] = "continue"

    return ExportConfig.model_validate(data)


def make_client(config: ExportConfig) -> KubectlClient:
    """Create the kubectl client for a run's cluster selection."""
    return KubectlClient(
        config=default_config.kubectl,
        kubeconfig=config.cluster.kubeconfig,
        context=config.cluster.context,
        cluster=config.cluster.cluster,
    )


def enable_verbose_logging() -> None:
    obs.set_log_level("DEBUG")
    logger.logger.setLevel(logging.DEBUG)
    logger.debug("Verbose logging enabled")


def report_result(result: ExportResult, output_dir: Path) -> None:
    """Print the human-readable run summary."""
    print_summary("\n" + "=" * 60)
    print_summary("EXPORT SUMMARY")
    print_summary("=" * 60)
    print_summary(f"  Context: {result.context.context_name or '-'}")
    print_summary(f"  Cluster: {result.context.cluster_name or '-'}")
    print_summary(f"  Namespace: {result.context.namespace or '-'}")
    print_summary(f"  Resource types: {len(result.resource_types)}")
    print_summary(f"  Exported: {result.exported_count} file(s) to {output_dir}")
    print_summary(f"  Skipped (owned by a controller): {result.skipped_count}")
    print_summary(f"  Failed: {result.failed_count}")
    for failure in result.failures:
        target = failure["resource_type"]
        if failure.get("name"):
            target += f"/{failure['name']}"
        print_summary(f"    ✗ {target}: {failure['error']}")
    if result.duration_seconds is not None:
        print_summary(f"  Duration: {result.duration_seconds:.3f}s")
    print_summary("=" * 60 + "\n")


@click.group()
@click.version_option(version=__version__, prog_name="kubeexport")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Export resources from your Kubernetes cluster."""
    # Also runs when a command calls sys.exit().
    ctx.call_on_close(obs.shutdown)


def cluster_options(func):  # type: ignore[no-untyped-def]
    """Options selecting the cluster to talk to."""
    func = click.option("--kubeconfig", help="Path to the kubeconfig file")(func)
    func = click.option("--context", help="kubeconfig context to use")(func)
    func = click.option("--cluster", help="kubeconfig cluster to use")(func)
    return func


@cli.command()
@click.argument("resource_types", nargs=-1)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to export configuration YAML file",
)
@click.option(
    "--dir",
    "-d",
    "output_dir",
    type=click.Path(path_type=Path),
    help="Output directory (default: output)",
)
@click.option(
    "--force",
    is_flag=True,
    help="Delete the output directory first when it is not empty",
)
@click.option(
    "--output",
    "-o",
    "output_format",
    type=click.Choice(["yaml", "json"], case_sensitive=False),
    help="Output format (default: yaml)",
)
@click.option(
    "--layout",
    type=click.Choice(["app", "flat"], case_sensitive=False),
    help="app: group by 'app' label under projects/; flat: by resource type only",
)
@click.option(
    "--exclude",
    multiple=True,
    help="Resource types to skip during discovery (repeatable, comma-separated)",
)
@click.option("--namespace", "-n", help="Namespace to export from")
@cluster_options
@click.option(
    "--continue-on-error",
    is_flag=True,
    help="Record failed resource types and objects and keep going",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def export(
    resource_types: tuple[str, ...],
    config: Path | None,
    output_dir: Path | None,
    force: bool,
    output_format: str | None,
    layout: str | None,
    exclude: tuple[str, ...],
    namespace: str | None,
    kubeconfig: str | None,
    context: str | None,
    cluster: str | None,
    continue_on_error: bool,
    verbose: bool,
) -> None:
    """Export resources into one file per object.

    Without RESOURCE_TYPES every namespaced, listable resource type except the
    excluded ones is exported.

    Example:
        # export all exportable resources into directory "exported_resources"
        kubeexport export --dir exported_resources

        # export deployments and jobs into the default output directory
        kubeexport export deployments jobs
    """
    if verbose:
        enable_verbose_logging()

    try:
        base = load_export_config(config) if config else ExportConfig()
        export_config = build_export_config(
            base,
            resource_types=resource_types,
            output_dir=output_dir,
            force=force,
            output_format=output_format.lower() if output_format else None,
            layout=layout.lower() if layout else None,
            exclude=exclude,
            kubeconfig=kubeconfig,
            context=context,
            cluster=cluster,
            namespace=namespace,
            continue_on_error=continue_on_error,
        )

        for warning in validate_config(export_config):
            logger.warning(warning)

        engine = ExportEngine(export_config, make_client(export_config))
        result = engine.run()

    except ExportError as e:
        logger.error(
            "Export failed",
            error=e if verbose else None,
            resource_type=e.resource_type or "",
            name=e.object_name or "",
            cause=str(e.__cause__ or e),
        )
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    except Exception as e:
        logger.error("Export failed", error=e if verbose else None, cause=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    report_result(result, export_config.output.dir)
    if not result.success:
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to export configuration YAML file",
)
@click.option(
    "--exclude",
    multiple=True,
    help="Resource types to leave out (repeatable, comma-separated)",
)
@cluster_options
def resources(
    config: Path | None,
    exclude: tuple[str, ...],
    kubeconfig: str | None,
    context: str | None,
    cluster: str | None,
) -> None:
    """List the resource types an export without arguments would visit."""
    try:
        base = load_export_config(config) if config else ExportConfig()
        export_config = build_export_config(
            base, exclude=exclude, kubeconfig=kubeconfig, context=context, cluster=cluster
        )
        selected = resolve_resource_types(
            make_client(export_config),
            export_config.resource_types,
            export_config.excluded_resource_types,
        )
    except Exception as e:
        logger.error("Listing resource types failed", cause=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for resource_type in selected:
        print_summary(
            f"{resource_type.name:<40} {resource_type.group_version:<35} {resource_type.kind}"
        )


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to export configuration YAML file",
)
def validate(config: Path) -> None:
    """Validate an export configuration file.

    Checks the configuration for:
    - Valid YAML syntax
    - Required fields and type correctness
    - Common mistakes (e.g., a non-empty output directory without force)

    Example:
        kubeexport validate --config export.yaml
    """
    logger.info(f"Validating configuration: {config}")

    try:
        export_config = load_export_config(config)
    except Exception as e:
        logger.error(f"Validation failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    warnings = validate_config(export_config)
    for warning in warnings:
        logger.warning(warning)

    print_summary("\nConfiguration summary:")
    print_summary(f"  Output: {export_config.output.dir} ({export_config.output.format})")
    print_summary(f"  Layout: {export_config.output.layout}")
    print_summary(f"  Force: {export_config.output.force}")
    if export_config.resource_types:
        print_summary(f"  Resource types: {', '.join(export_config.resource_types)}")
    else:
        print_summary("  Resource types: discovered")
        print_summary(f"  Excluded: {', '.join(export_config.excluded_resource_types) or '-'}")
    print_summary(f"  On error: {export_config.on_error}")
    if warnings:
        print_summary(f"\n{len(warnings)} warning(s)")
    print_summary("\n✓ Configuration is valid")


if __name__ == "__main__":
    cli()
