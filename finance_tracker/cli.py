# finance_tracker/cli.py
import json
import logging

import click
from dotenv import load_dotenv

from finance_tracker.config import load_config
from finance_tracker.core.errors import TrackerError
from finance_tracker.database import (
    connect,
    export_transactions,
    import_transactions,
    transaction_stats,
)
from finance_tracker.filters import TransactionFilter
from finance_tracker.loaders import CSVLoader
from finance_tracker.outputs import CSVOutput

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def filter_options(func):
    """Attach the shared --from/--to/--category/--q options to a command."""
    options = [
        click.option('--from', 'date_from', default=None, help='Earliest date (YYYY-MM-DD), inclusive'),
        click.option('--to', 'date_to', default=None, help='Latest date (YYYY-MM-DD), inclusive'),
        click.option('--category', default=None, help='Exact category to match'),
        click.option('--q', default=None, help='Text to find in description, tags or account'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used if it does not exist)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with MICDOG_* overrides'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database file (overrides config)'
)
@click.option('--log-level', default=None, help='Logging level, e.g. DEBUG or INFO')
@click.pass_context
def main(ctx, config_path, env_file, db_path, log_level):
    """
    MicDog personal finance tracker: serve the web UI and API, or move
    transactions in and out of the database as CSV.
    """
    if env_file:
        load_dotenv(env_file)

    cfg = load_config(config_path)
    if db_path:
        cfg['db_path'] = db_path
    if log_level:
        cfg['log_level'] = log_level
    logging.basicConfig(level=str(cfg['log_level']).upper(), format=LOG_FORMAT)
    ctx.obj = cfg


@main.command()
@click.option('--host', default=None, help='Host to bind (default from config)')
@click.option('--port', default=None, type=int, help='Port to bind (default from config)')
@click.pass_obj
def serve(cfg, host, port):
    """Run the web UI and JSON API."""
    import uvicorn
    from webapp.main import create_app

    host = host or cfg['host']
    port = port or int(cfg['port'])
    click.echo(f"MicDog running at http://{host}:{port} (db: {cfg['db_path']})")
    uvicorn.run(create_app(cfg), host=host, port=port, log_level=str(cfg['log_level']).lower())


@main.command('init-db')
@click.pass_obj
def init_db(cfg):
    """Create the database file and schema."""
    with connect(cfg['db_path']):
        pass
    click.echo(f"Database ready at {cfg['db_path']}")


@main.command('export')
@filter_options
@click.option(
    '-o', '--output', 'output_path',
    default=None,
    type=click.Path(dir_okay=False, writable=True),
    help='Write CSV to this file instead of stdout'
)
@click.pass_obj
def export_cmd(cfg, date_from, date_to, category, q, output_path):
    """Export matching transactions as CSV, oldest first."""
    filters = TransactionFilter(date_from=date_from, date_to=date_to, category=category, q=q)
    with connect(cfg['db_path']) as conn:
        txs = export_transactions(conn, filters)

    if output_path:
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            count = CSVOutput().write(txs, f)
        click.echo(f"Exported {count} transaction(s) to {output_path}", err=True)
    else:
        click.echo(CSVOutput().render(txs).decode('utf-8'), nl=False)


@main.command('import')
@click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_cmd(cfg, csv_path):
    """Import transactions from a CSV file in the export format."""
    try:
        with open(csv_path, 'rb') as f, connect(cfg['db_path']) as conn:
            count = import_transactions(conn, CSVLoader().load(f))
    except TrackerError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Imported {count} transaction(s).")


@main.command()
@filter_options
@click.pass_obj
def stats(cfg, date_from, date_to, category, q):
    """Print income, expense, balance and breakdowns as JSON."""
    filters = TransactionFilter(date_from=date_from, date_to=date_to, category=category, q=q)
    with connect(cfg['db_path']) as conn:
        result = transaction_stats(conn, filters)
    click.echo(json.dumps(result.to_dict(), indent=2))
