#!/usr/bin/env python3
"""
Purchase Order Agents — CLI entry point.

Usage examples:
  python main.py check                               # Verify model endpoint and rules
  python main.py extract po.png                      # Image -> summary JSON
  python main.py approve po.json                     # Evaluate an extracted summary
  python main.py approve po.json --max-grand-total 10000 -d Sales -d Engineering
  python main.py process po.png                      # Full pipeline on one image
  python main.py process purchase_orders/ -o results/

  python main.py serve intake --port 5000            # Run the intake agent
  python main.py serve processing --port 5207        # Run the processing agent
"""
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

import click

from config import Config
from models.wire import parse_decimal
from pipeline.contract import ContractError, parse_summary
from pipeline.processor import PurchaseOrderProcessor


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quieten noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _parse_amount(ctx: click.Context, param: click.Parameter, value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return parse_decimal(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _echo_result(result) -> None:
    po = result.purchase_order
    approval = result.approval

    click.echo()
    click.echo(f"  PO:          {po.po_number or '(unknown)'}")
    click.echo(f"  Supplier:    {po.supplier_name or '(unknown)'}")
    click.echo(f"  Department:  {po.buyer_department or '(unknown)'}")
    click.echo(f"  Subtotal:    {po.sub_total:.2f}")
    click.echo(f"  Tax:         {po.tax:.2f}")
    click.echo(f"  Grand total: {po.grand_total:.2f}")
    click.echo()

    icon = "✓" if approval.is_approved else "✗"
    click.echo(f"  {icon} {'APPROVED' if approval.is_approved else 'REJECTED'}: {approval.approval_reason}")
    for failure in approval.failures[1:]:
        click.echo(f"    also: {failure.description}")
    for issue in approval.configuration_issues:
        click.echo(f"  ⚠ Rule configuration: {issue}")

    if result.discrepancies:
        click.echo(f"\n  Discrepancies ({len(result.discrepancies)}):")
        for d in result.discrepancies:
            icon = "✗" if d.severity == "error" else ("⚠" if d.severity == "warning" else "ℹ")
            click.echo(f"    {icon} [{d.severity.upper()}] {d.description}")
    click.echo()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Purchase Order Agents — extract, check, and approve purchase orders."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose)


# --------------------------------------------------------------------
# check command
# --------------------------------------------------------------------

@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Verify the model endpoint and show the active approval rules."""
    config = Config()
    processor = PurchaseOrderProcessor(config)

    click.echo("\n=== Purchase Order Agents Setup Check ===\n")

    settings = config.llm_settings()
    missing = settings.missing()
    click.echo(f"  Endpoint:      {settings.endpoint or '(OpenAI default)'}")
    click.echo(f"  Deployment:    {settings.deployment_name}")
    if missing:
        click.echo(f"  ✗ Missing settings: {', '.join(missing)}")
    else:
        status = processor.intake.check_connection()
        if status["ok"]:
            model_status = "✓ available" if status.get("model_available") else "✗ NOT listed"
            click.echo(f"  Model:         {model_status}")
        else:
            click.echo(f"  ✗ Endpoint NOT reachable ({status.get('error')})")
            click.echo("  → Check ENDPOINT, API_KEY and API_VERSION in your .env")

    rules = processor.rules
    click.echo()
    click.echo(f"  Max grand total:      {rules.max_grand_total:.2f}")
    click.echo(f"  Allowed departments:  {', '.join(rules.sorted_departments()) or '(none)'}")
    click.echo(f"  Department matching:  {'case-insensitive' if rules.case_insensitive_departments else 'exact'}")
    for issue in rules.configuration_issues():
        click.echo(f"  ⚠ {issue}")
    click.echo()


# --------------------------------------------------------------------
# extract command
# --------------------------------------------------------------------

@cli.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@click.option("--model", "-m", default=None, help="Model / deployment name")
def extract(image: str, model: str | None) -> None:
    """Extract the purchase order summary from IMAGE and print it as JSON."""
    config = Config()
    if model:
        config.deployment_name = model
    processor = PurchaseOrderProcessor(config)
    try:
        summary = processor.intake.extract(image)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps(summary.to_wire(), indent=2))


# --------------------------------------------------------------------
# approve command
# --------------------------------------------------------------------

@cli.command()
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--max-grand-total", default=None, callback=_parse_amount, help="Grand total must be below this")
@click.option("--department", "-d", "departments", multiple=True, help="Allowed buyer department (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print the decision document only")
def approve(json_file: str, max_grand_total: Decimal | None, departments: tuple[str, ...], as_json: bool) -> None:
    """Evaluate an already-extracted purchase order summary in JSON_FILE."""
    config = Config()
    if max_grand_total is not None:
        config.max_grand_total = max_grand_total
    if departments:
        config.allowed_departments = list(departments)

    try:
        summary = parse_summary(Path(json_file).read_text(encoding="utf-8"))
    except ContractError as e:
        click.echo(f"Error: '{json_file}' is not a purchase order document: {e}", err=True)
        sys.exit(1)

    result = PurchaseOrderProcessor(config).process_summary(summary, source_file=json_file)
    if as_json:
        click.echo(json.dumps(result.approval.to_wire(), indent=2))
    else:
        _echo_result(result)


# --------------------------------------------------------------------
# process command
# --------------------------------------------------------------------

@cli.command()
@click.argument("target", type=click.Path(exists=True))
@click.option("--model", "-m", default=None, help="Model / deployment name")
@click.option("--output", "-o", default=None, type=click.Path(), help="Output directory")
@click.option("--no-pretty", is_flag=True, help="Output compact (non-indented) JSON")
def process(target: str, model: str | None, output: str | None, no_pretty: bool) -> None:
    """Process a single purchase order image or a directory of images."""
    config = Config()
    if model:
        config.deployment_name = model
    if output:
        config.output_dir = Path(output)
    if no_pretty:
        config.pretty_json = False

    processor = PurchaseOrderProcessor(config)
    target_path = Path(target)

    if target_path.is_dir():
        results = processor.process_batch(target_path)
        approved = [r for r in results if r.approval.is_approved]
        click.echo(f"\nProcessed {len(results)} purchase orders, {len(approved)} approved.")
        for r in results:
            if not r.approval.is_approved:
                click.echo(f"   ✗ {Path(r.source_file).name}: {r.approval.approval_reason}")
        if config.output_dir:
            click.echo(f"\nResults written to: {config.output_dir}/")
    else:
        try:
            result = processor.process(target_path)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        _echo_result(result)
        if config.output_dir:
            click.echo(f"  Result saved to: {config.output_dir / (target_path.stem + '.json')}")


# --------------------------------------------------------------------
# serve command
# --------------------------------------------------------------------

@cli.command()
@click.argument("agent", type=click.Choice(["intake", "processing"]))
@click.option("--host", default=None, help="Bind address (default: AGENT_HOST or 127.0.0.1)")
@click.option("--port", "-p", default=None, type=int, help="Port (default: AGENT_PORT or 5000)")
def serve(agent: str, host: str | None, port: int | None) -> None:
    """Run the intake or processing AGENT as an HTTP service."""
    import uvicorn

    from agents import build_app

    config = Config()
    host = host or config.agent_host
    port = port or config.agent_port

    click.echo(f"\n  Agent:     {agent}\n  Listening: http://{host}:{port}/\n")
    uvicorn.run(build_app(agent, config), host=host, port=port)


if __name__ == "__main__":
    cli()
