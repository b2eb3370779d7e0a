"""Unified CLI for roks-advisor.

Provides four subcommands:
    roks-advisor web       – run the web API (FastAPI + uvicorn)
    roks-advisor mcp       – run the MCP server (stdio or SSE transport)
    roks-advisor estimate  – price one deployment from the terminal
    roks-advisor clusters  – analyse live clusters, optionally to Excel

Running ``roks-advisor`` without a subcommand defaults to ``web``.
"""

import json
from pathlib import Path

import click

from roks_advisor import __version__


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="roks-advisor")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """ROKS Advisor."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(web)


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Host to bind to.")
@click.option("--port", default=5001, show_default=True, help="Port to listen on.")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose logging.",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Auto-reload on code changes (development only).",
)
def web(host: str, port: int, verbose: bool, reload: bool) -> None:
    """Run the web API (default)."""
    import logging

    import uvicorn

    from roks_advisor.app import _setup_logging, app

    log_level = "info" if verbose else "warning"
    _setup_logging(level=logging.DEBUG if verbose else logging.WARNING)

    url = f"http://{host}:{port}"
    click.echo(f"✦ roks-advisor running at {click.style(url, fg='cyan', bold=True)}")
    click.echo(f"  API docs at {url}/docs")
    if reload:
        click.echo(f"  {click.style('⟳ Auto-reload enabled', fg='yellow')}")
    click.echo("  Press Ctrl+C to stop.\n")

    if reload:
        uvicorn.run(
            "roks_advisor.app:app",
            host=host,
            port=port,
            log_level=log_level,
            reload=True,
            reload_dirs=[str(Path(__file__).resolve().parent)],
        )
    else:
        uvicorn.run(app, host=host, port=port, log_level=log_level)


@cli.command()
@click.option(
    "--sse",
    is_flag=True,
    default=False,
    help="Use SSE transport instead of stdio.",
)
@click.option(
    "--port",
    default=8080,
    show_default=True,
    help="Port for SSE transport.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose logging.",
)
def mcp(sse: bool, port: int, verbose: bool) -> None:
    """Run the MCP server."""
    import logging

    from roks_advisor.mcp_server import mcp as mcp_server

    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    if sse:
        mcp_server.settings.port = port
        mcp_server.run(transport="sse")
    else:
        mcp_server.run(transport="stdio")


@cli.command()
@click.argument("baseline_id")
@click.argument("flavor_id")
@click.option(
    "--zones",
    type=click.IntRange(1, 3),
    default=1,
    show_default=True,
    help="Number of availability zones.",
)
@click.option(
    "--json", "as_json", is_flag=True, default=False, help="Print the full result as JSON."
)
@click.option(
    "--severity",
    type=click.Choice(["high", "medium", "low"]),
    default=None,
    help="Only list risks of this severity.",
)
@click.option(
    "--category",
    type=click.Choice(["configuration", "availability", "cost", "optimization", "performance"]),
    default=None,
    help="Only list risks in this category.",
)
@click.option(
    "--type",
    "rec_type",
    default=None,
    help="Only list recommendations of this type (e.g. optimization, critical).",
)
def estimate(
    baseline_id: str,
    flavor_id: str,
    zones: int,
    as_json: bool,
    severity: str | None,
    category: str | None,
    rec_type: str | None,
) -> None:
    """Estimate the cost of BASELINE_ID running on FLAVOR_ID workers."""
    from roks_advisor.services.advisor import InputContractError
    from roks_advisor.services.advisor import estimate as run_estimate
    from roks_advisor.services.cost_calculator import format_currency
    from roks_advisor.services.recommendation_engine import filter_recommendations_by_type
    from roks_advisor.services.risk_assessor import (
        filter_risks_by_category,
        filter_risks_by_severity,
    )

    try:
        result = run_estimate(baseline_id, flavor_id, zones)
    except (InputContractError, LookupError) as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    costs = result.costs
    score = result.costScore
    colour = {"GREEN": "green", "AMBER": "yellow", "RED": "red"}[score.score.value]
    click.echo(costs.formula)
    click.echo(f"  {costs.calculation}")
    click.echo(
        f"  Monthly: {format_currency(costs.total.monthly)}"
        f"   Yearly: {format_currency(costs.total.yearly)}"
    )
    if result.periods and result.perResource:
        click.echo(
            f"  Daily:   {format_currency(result.periods.daily)}"
            f"   Per vCPU: {format_currency(result.perResource.perVCPU)}/month"
        )
    click.echo(f"  Score:   {click.style(score.label, fg=colour, bold=True)} – {score.message}")

    risks = result.risks
    if severity:
        risks = filter_risks_by_severity(risks, severity)
    if category:
        risks = filter_risks_by_category(risks, category)
    recommendations = result.recommendations
    if rec_type:
        recommendations = filter_recommendations_by_type(recommendations, rec_type)

    if risks:
        click.echo("\nRisks:")
        for risk in risks:
            click.echo(f"  [{risk.severity.value}] {risk.title}")
    if recommendations:
        click.echo("\nRecommendations:")
        for rec in recommendations:
            click.echo(f"  [{rec.priority.value}] {rec.title}")


@cli.command()
@click.option(
    "--export",
    "export_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Also write an Excel report to this directory.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose logging.",
)
def clusters(export_dir: Path | None, verbose: bool) -> None:
    """Analyse the cost of every cluster in the IBM Cloud account."""
    import logging

    from roks_advisor import ibm_api
    from roks_advisor.app import _setup_logging
    from roks_advisor.reports.excel import generate_cluster_report
    from roks_advisor.services.cluster_analyzer import analyze_all_clusters
    from roks_advisor.services.cost_calculator import format_currency, format_large_number

    _setup_logging(level=logging.INFO if verbose else logging.WARNING)
    if not ibm_api.is_configured():
        raise click.ClickException(ibm_api.NOT_CONFIGURED_MESSAGE)

    report = analyze_all_clusters()
    for cluster in report.clusters:
        click.echo(
            f"{cluster.name:<30} {cluster.costScore.value:<6} "
            f"{cluster.workers:>3} × {cluster.flavor:<20} "
            f"{format_currency(cluster.costs.monthly)}/month"
        )
    for failed in report.failedClusters:
        click.echo(f"{failed.name or failed.id:<30} FAILED  {failed.error}", err=True)

    click.echo(
        f"\n{report.totalClusters} clusters, {report.totalWorkers} workers, "
        f"{format_currency(report.totalMonthlyCost)}/month "
        f"(${format_large_number(report.totalYearlyCost)}/year)"
    )

    if export_dir is not None:
        artifact = generate_cluster_report(report, export_dir)
        click.echo(f"Report written to {artifact.filepath}")
