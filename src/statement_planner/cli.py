"""Command-line interface for the statement planner."""

import argparse
import sys
from decimal import Decimal
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from statement_planner import __version__
from statement_planner.config import Config, ConfigError, load_config
from statement_planner.models.bank import BankProfile, FixedExpense, find_bank, slugify
from statement_planner.models.transaction import Transaction
from statement_planner.utils.date_utils import format_day_month, format_month_year, parse_period
from statement_planner.utils.decimal_utils import format_currency, parse_amount
from statement_planner.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="statement-planner",
        description=(
            "Import credit card statements, see what each month bills "
            "and project future installments"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s import naranja_x resumen_junio.pdf
  %(prog)s show --mode projection --period 2024-09
  %(prog)s show --bank "Naranja X" --export junio.csv
  %(prog)s balance --period 2024-08
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Base config directory (default: ./config)",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Workbook holding the data (default: storage.workbook from settings)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v, -vv)",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_import = sub.add_parser("import", help="Extract a statement with AI and store it")
    p_import.add_argument("bank", help="Bank profile id or name")
    p_import.add_argument("files", nargs="+", type=Path, help="One PDF or several screenshots")

    p_periods = sub.add_parser("periods", help="List history and projection periods")
    p_periods.add_argument("--bank", default=None, help="Restrict to one bank")

    p_show = sub.add_parser("show", help="Show the transactions billed in a period")
    p_show.add_argument("--period", default=None, help="Period (YYYY-MM), default: latest")
    p_show.add_argument(
        "--mode",
        choices=["history", "projection"],
        default="history",
        help="history: real statements; projection: base month and future installments",
    )
    p_show.add_argument("--bank", default=None, help="Restrict to one bank")
    p_show.add_argument("--search", default=None, help="Filter by detail or bank name")
    p_show.add_argument("--export", type=Path, default=None, metavar="FILE", help="Also write a CSV")

    p_balance = sub.add_parser("balance", help="Income minus card charges and fixed expenses")
    p_balance.add_argument("--period", default=None, help="Period (YYYY-MM), default: latest")

    p_banks = sub.add_parser("banks", help="Manage bank profiles")
    banks_sub = p_banks.add_subparsers(dest="banks_command", metavar="ACTION")
    banks_sub.add_parser("list", help="List bank profiles")
    p_bank_add = banks_sub.add_parser("add", help="Add a bank profile")
    p_bank_add.add_argument("name", help="Display name")
    p_bank_add.add_argument("--columns", default="", help="Comma-separated statement columns")
    p_bank_add.add_argument("--currency", default="$", help="Currency symbol")
    p_bank_add.add_argument("--closing-keywords", default="", help="Label of the closing date")
    p_bank_add.add_argument("--due-keywords", default="", help="Label of the due date")
    p_bank_delete = banks_sub.add_parser("delete", help="Delete a bank profile (keeps its transactions)")
    p_bank_delete.add_argument("bank", help="Bank profile id or name")
    p_bank_analyze = banks_sub.add_parser("analyze", help="Create a profile from a sample statement")
    p_bank_analyze.add_argument("file", type=Path, help="Sample statement")

    p_fixed = sub.add_parser("fixed", help="Manage fixed monthly expenses")
    fixed_sub = p_fixed.add_subparsers(dest="fixed_command", metavar="ACTION")
    fixed_sub.add_parser("list", help="List fixed expenses")
    p_fixed_add = fixed_sub.add_parser("add", help="Add a fixed expense")
    p_fixed_add.add_argument("name", help="Expense name")
    p_fixed_add.add_argument("amount", help="Monthly amount")
    p_fixed_remove = fixed_sub.add_parser("remove", help="Remove a fixed expense")
    p_fixed_remove.add_argument("id", help="Expense id")

    p_income = sub.add_parser("income", help="Set the monthly income")
    p_income.add_argument("amount", help="Monthly income")

    sub.add_parser("validate", help="Validate configuration files")

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def validate_period(value: Optional[str]) -> Optional[str]:
    """Check a --period argument.

    Raises:
        ValueError: If the value is not a YYYY-MM period.
    """
    if value is None:
        return None
    if len(value) != 7 or parse_period(value) is None:
        raise ValueError(f"Invalid period '{value}', expected YYYY-MM")
    return value


def parse_money(value: str) -> Decimal:
    """Parse an amount typed on the command line.

    Raises:
        ValueError: If the text is not an amount.
    """
    return parse_amount(value)


def open_store(args: argparse.Namespace, config: Config):
    """Open the workbook store named by --store or the settings."""
    from statement_planner.storage import WorkbookStore

    return WorkbookStore(args.store or Path(config.storage.workbook))


def load_banks(store, config: Config) -> list[BankProfile]:
    """Stored bank profiles, seeded from banks.yaml while none are stored."""
    from statement_planner.storage.workbook_store import BANKS_SHEET

    if store.has_collection(BANKS_SHEET):
        return store.fetch_banks()
    return list(config.banks)


def validate_config(args: argparse.Namespace) -> int:
    """Validate configuration files.

    Args:
        args: Parsed command-line arguments.

    Returns:
        0 if valid, 1 if errors found.
    """
    console.print("[bold]Validating configuration files...[/bold]\n")

    errors = []
    warnings = []

    config_dir = args.config_dir
    if not config_dir.exists():
        warnings.append(f"Config directory not found: {config_dir}")

    for label, name in (("Settings", "settings.yaml"), ("Banks", "banks.yaml")):
        path = config_dir / name
        if path.exists():
            console.print(f"[green]✓[/green] {label}: {path}")
        else:
            warnings.append(f"{label} file not found: {path}")

    try:
        config = load_config(config_dir=config_dir)
        console.print("\n[green]✓[/green] Configuration loaded successfully")
        console.print(f"  - {len(config.banks)} bank profiles")
        console.print(f"  - {len(config.plan_rules)} plan rules")
        console.print(f"  - {len(config.keywords.payment)} payment keywords")
        console.print(f"  - {len(config.keywords.tax)} tax keywords")
    except (ConfigError, OSError, ValueError, yaml.YAMLError) as e:
        errors.append(f"Failed to load configuration: {e}")

    if warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for w in warnings:
            console.print(f"  - {w}")

    if errors:
        console.print("\n[red]Errors:[/red]")
        for err in errors:
            console.print(f"  - {err}")
        return 1

    console.print("\n[green]Configuration is valid.[/green]")
    return 0


def create_progress() -> Progress:
    """Create a spinner for long-running calls.

    Returns:
        Rich Progress instance.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )


def run_import(args: argparse.Namespace, config: Config) -> int:
    """Extract a statement and append its transactions to the store."""
    from statement_planner.processing.ai import (
        AIClient,
        AIClientConfig,
        AIClientError,
        ExtractionError,
        NoTransactionsError,
        StatementExtractor,
        load_statement_files,
    )
    from statement_planner.processing.normalizer import StatementNormalizer

    store = open_store(args, config)
    bank = find_bank(load_banks(store, config), args.bank)
    if bank is None:
        console.print(f"[red]Error: Unknown bank '{args.bank}'. See 'banks list'.[/red]")
        return 1

    try:
        files = load_statement_files(args.files)
    except ExtractionError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    with AIClient(AIClientConfig.from_config(config.ai)) as client:
        if not client.is_available:
            console.print(
                f"[red]Error: Set {config.ai.api_key_env} (environment or .env) to import statements[/red]"
            )
            return 1

        extractor = StatementExtractor(client, StatementNormalizer(config))
        try:
            with create_progress() as progress:
                progress.add_task(f"Reading {bank.name} statement...", total=None)
                transactions = extractor.extract_statement(files, bank)
        except NoTransactionsError:
            console.print("[red]No transactions detected in the statement.[/red]")
            return 1
        except (ExtractionError, AIClientError) as e:
            console.print(f"[red]Error analyzing the statement: {e}[/red]")
            return 1
        logger.info(client.get_usage_summary())

    result = store.save_transactions(transactions)
    if not result.ok:
        console.print(f"[red]Extracted {len(transactions)} transactions but saving failed: {result.message}[/red]")
        return 1

    post_closing = sum(1 for t in transactions if t.is_post_closing)
    console.print(f"[green]Imported {len(transactions)} transactions from {bank.name}[/green]")
    if post_closing:
        console.print(f"[yellow]{post_closing} purchases after the closing date bill next cycle[/yellow]")
    return 0


def run_periods(args: argparse.Namespace, config: Config) -> int:
    """Print the history and projection periods."""
    from statement_planner.processing.deduplicator import clean_transactions
    from statement_planner.processing.projection import (
        available_periods,
        available_projection_periods,
        history_totals,
        projection_totals,
    )
    from statement_planner.storage import refresh_all

    snapshot = refresh_all(open_store(args, config))
    clean = clean_transactions(snapshot.transactions, config)
    if args.bank:
        clean = [t for t in clean if t.bank_name == args.bank]

    if not available_periods(clean):
        console.print("[yellow]No statements imported yet.[/yellow]")
        return 0

    table = Table(title="Statement history")
    table.add_column("Period")
    table.add_column("Month")
    table.add_column("Total", justify="right")
    for key, total in reversed(history_totals(clean, config)):
        table.add_row(key, format_month_year(key), format_currency(total))
    console.print(table)

    horizon = config.projection.horizon_months
    options = {o.key: o for o in available_projection_periods(clean, horizon)}
    table = Table(title="Projection")
    table.add_column("Period")
    table.add_column("Month")
    table.add_column("Total", justify="right")
    for key, total in projection_totals(clean, config, horizon):
        table.add_row(key, options[key].label, format_currency(total))
    console.print(table)
    return 0


def render_view(view, bank: Optional[str]) -> None:
    """Print a period view: entries table, summary and statement dates."""
    from statement_planner.processing.aggregator import flatten

    result = view.result
    title = f"{format_month_year(view.period)} ({view.mode.value})"
    if bank:
        title += f" - {bank}"

    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Bank")
    table.add_column("Detail")
    table.add_column("Installment", justify="center")
    table.add_column("Amount", justify="right")

    for txn, is_child in flatten(result.grouped_transactions):
        table.add_row(*_entry_cells(txn, is_child), style="dim" if is_child else None)
    console.print(table)

    summary = result.summary
    console.print(f"  Total: [bold]{format_currency(summary.total)}[/bold]")
    console.print(f"  Installments: {format_currency(summary.total_installments)}")
    console.print(f"  Taxes and fees: {format_currency(summary.total_taxes)}")

    if view.bank_totals and not bank:
        for name, total in view.bank_totals.items():
            console.print(f"  {name}: {format_currency(total)}")

    dates = view.statement_dates
    if dates is not None:
        suffix = " (estimated)" if dates.is_estimated else ""
        if dates.closing:
            console.print(f"  Closing: {format_day_month(dates.closing)}{suffix}")
        if dates.due:
            console.print(f"  Due: {format_day_month(dates.due)}{suffix}")

    if result.has_post_closing:
        console.print("[yellow]  Includes purchases made after the previous closing date[/yellow]")


def _entry_cells(txn: Transaction, is_child: bool) -> list[str]:
    detail = f"  └ {txn.detail}" if is_child else txn.detail
    if txn.explanation and not is_child:
        detail += f"\n[dim]{txn.explanation}[/dim]"
    installment = f"{txn.installment_current}/{txn.installment_total}" if txn.is_installment else ""
    return [
        format_day_month(txn.date),
        txn.bank_name,
        detail,
        installment,
        format_currency(txn.amount),
    ]


def run_show(args: argparse.Namespace, config: Config) -> int:
    """Show one period's grouped transactions, optionally exporting them."""
    from statement_planner.output import CSVExporter
    from statement_planner.output.csv_exporter import default_export_name
    from statement_planner.processing.report_generator import ViewMode, build_period_view
    from statement_planner.storage import refresh_all

    try:
        period = validate_period(args.period)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    snapshot = refresh_all(open_store(args, config))
    view = build_period_view(
        snapshot.transactions,
        config,
        period=period,
        mode=ViewMode(args.mode),
        bank=args.bank,
        search=args.search,
    )
    if not view.period:
        console.print("[yellow]No statements imported yet.[/yellow]")
        return 0
    if period and view.period != period:
        console.print(f"[yellow]{period} not available, showing {view.period}[/yellow]")

    render_view(view, args.bank)

    if args.export:
        path = args.export
        if path.is_dir():
            path = path / default_export_name(view, args.bank or "")
        try:
            written = CSVExporter(config).export(path, view)
        except OSError as e:
            console.print(f"[red]Error: Could not write {path}: {e}[/red]")
            return 1
        console.print(f"[green]Exported to {written}[/green]")
    return 0


def run_balance(args: argparse.Namespace, config: Config) -> int:
    """Show income against card charges and fixed expenses."""
    from statement_planner.processing.balance_calculator import BalanceCalculator
    from statement_planner.storage import refresh_all

    try:
        period = validate_period(args.period)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    snapshot = refresh_all(open_store(args, config))
    calculator = BalanceCalculator(config, snapshot.transactions)
    options = calculator.balance_periods()
    if not options:
        console.print("[yellow]No statements imported yet.[/yellow]")
        return 0

    keys = [o.key for o in options]
    if period and period not in keys:
        console.print(f"[yellow]{period} not available, showing {keys[0]}[/yellow]")
        period = None
    balance = calculator.monthly_balance(period or keys[0], snapshot.income, snapshot.fixed_expenses)

    console.print(f"[bold]Balance for {format_month_year(balance.period)}[/bold]")
    console.print(f"  Income: {format_currency(balance.income)}")
    console.print(f"  Cards: {format_currency(balance.card_total)}")
    console.print(f"  Fixed expenses: {format_currency(balance.fixed_total)}")
    console.print(f"  Total out: {format_currency(balance.total_out)}")
    color = "green" if balance.is_healthy else "red"
    console.print(f"  Balance: [{color}]{format_currency(balance.balance)}[/{color}]")
    return 0


def run_banks(args: argparse.Namespace, config: Config) -> int:
    """List, add, delete or analyze bank profiles."""
    store = open_store(args, config)
    banks = load_banks(store, config)
    action = args.banks_command or "list"

    if action == "list":
        table = Table(title="Bank profiles")
        table.add_column("Id")
        table.add_column("Name")
        table.add_column("Currency")
        table.add_column("Columns")
        for bank in banks:
            table.add_row(bank.id, bank.name, bank.currency_symbol, ", ".join(bank.columns))
        console.print(table)
        return 0

    if action == "add":
        bank = BankProfile.from_dict({
            "name": args.name,
            "columns": args.columns,
            "currency_symbol": args.currency,
            "closing_date_keywords": args.closing_keywords,
            "due_date_keywords": args.due_keywords,
        })
        if find_bank(banks, bank.id) or find_bank(banks, bank.name):
            console.print(f"[red]Error: Bank '{args.name}' already exists[/red]")
            return 1
        return _save_banks(store, banks + [bank], f"Added {bank.name} ({bank.id})")

    if action == "delete":
        bank = find_bank(banks, args.bank)
        if bank is None:
            console.print(f"[red]Error: Unknown bank '{args.bank}'[/red]")
            return 1
        remaining = [b for b in banks if b is not bank]
        return _save_banks(store, remaining, f"Deleted {bank.name}; its transactions are kept")

    if action == "analyze":
        return _analyze_bank(args.file, store, banks, config)

    return 1


def _save_banks(store, banks: list[BankProfile], message: str) -> int:
    result = store.save_banks(banks)
    if not result.ok:
        console.print(f"[red]Error: {result.message}[/red]")
        return 1
    console.print(f"[green]{message}[/green]")
    return 0


def _analyze_bank(path: Path, store, banks: list[BankProfile], config: Config) -> int:
    from statement_planner.processing.ai import (
        AIClient,
        AIClientConfig,
        AIClientError,
        ExtractionError,
        StatementExtractor,
        load_statement_files,
    )
    from statement_planner.processing.normalizer import StatementNormalizer

    try:
        files = load_statement_files([path])
    except ExtractionError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    with AIClient(AIClientConfig.from_config(config.ai)) as client:
        extractor = StatementExtractor(client, StatementNormalizer(config))
        try:
            with create_progress() as progress:
                progress.add_task("Analyzing statement format...", total=None)
                bank = extractor.analyze_bank_format(files[0])
        except (ExtractionError, AIClientError) as e:
            console.print(f"[red]Error analyzing the statement: {e}[/red]")
            return 1

    if find_bank(banks, bank.id) or find_bank(banks, bank.name):
        bank.id = f"{slugify(bank.name)}_{len(banks) + 1}"
    return _save_banks(store, banks + [bank], f"Added {bank.name} ({bank.id})")


def run_fixed(args: argparse.Namespace, config: Config) -> int:
    """List, add or remove fixed expenses."""
    store = open_store(args, config)
    expenses = store.fetch_fixed_expenses()
    action = args.fixed_command or "list"

    if action == "list":
        table = Table(title="Fixed expenses")
        table.add_column("Id")
        table.add_column("Name")
        table.add_column("Amount", justify="right")
        for expense in expenses:
            table.add_row(expense.id, expense.name, format_currency(expense.amount))
        console.print(table)
        return 0

    if action == "add":
        try:
            amount = parse_money(args.amount)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1
        expenses.append(FixedExpense(name=args.name, amount=amount))
        message = f"Added {args.name}"
    else:
        remaining = [e for e in expenses if e.id != args.id]
        if len(remaining) == len(expenses):
            console.print(f"[red]Error: Unknown expense id '{args.id}'[/red]")
            return 1
        expenses = remaining
        message = f"Removed {args.id}"

    result = store.save_fixed_expenses(expenses)
    if not result.ok:
        console.print(f"[red]Error: {result.message}[/red]")
        return 1
    console.print(f"[green]{message}[/green]")
    return 0


def run_income(args: argparse.Namespace, config: Config) -> int:
    """Store the monthly income."""
    try:
        amount = parse_money(args.amount)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    result = open_store(args, config).save_income(amount)
    if not result.ok:
        console.print(f"[red]Error: {result.message}[/red]")
        return 1
    console.print(f"[green]Monthly income set to {format_currency(amount)}[/green]")
    return 0


COMMANDS = {
    "import": run_import,
    "periods": run_periods,
    "show": run_show,
    "balance": run_balance,
    "banks": run_banks,
    "fixed": run_fixed,
    "income": run_income,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Arguments (default: sys.argv).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "validate":
        setup_logging(level=get_log_level(args.verbose), log_file=None, console_output=args.verbose > 0)
        return validate_config(args)

    try:
        config = load_config(config_dir=args.config_dir)
    except (ConfigError, OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("Run 'statement-planner validate' to check configuration files.")
        return 1

    level = get_log_level(args.verbose) if args.verbose else config.logging.level
    setup_logging(level=level, log_file=config.logging.file, console_output=args.verbose > 0)

    return COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
