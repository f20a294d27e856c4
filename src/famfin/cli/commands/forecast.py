"""Forecast and retrospective commands."""

import click

from famfin.cli.record_resolution import amount_or_exit
from famfin.domain import retrospective
from famfin.domain.account import AccountService
from famfin.domain.projection import ProjectionService


@click.group()
def forecast_group():
    """Forecast upcoming expenses and review past months."""
    pass


@forecast_group.command("next-month")
@click.pass_context
def next_month(ctx):
    """Show the expenses already committed for next month."""
    service = ProjectionService(ctx.obj["db"], ctx.obj["clock"])
    expenses = service.get_next_month_expenses(ctx.obj["user"])

    for label, entries in (
        ("Fixed", expenses.fixed),
        ("Card purchases", expenses.card_purchases),
        ("Installments", expenses.installments),
    ):
        if not entries:
            continue
        click.echo(f"\n{label}:")
        for txn in entries:
            click.echo(f"  R$ {txn.amount:>10,.2f}  {txn.description}")

    click.echo("")
    click.echo(f"Fixed:        R$ {expenses.total_fixed:>12,.2f}")
    click.echo(f"Installments: R$ {expenses.total_installments:>12,.2f}")
    click.echo(f"Total:        R$ {expenses.total:>12,.2f}")


@forecast_group.command("cash-flow")
@click.option("--months", default=6, show_default=True, type=click.IntRange(1, 36), help="Months to project")
@click.option("--starting-balance", help="Balance to start from; defaults to the total account balance")
@click.pass_context
def cash_flow(ctx, months: int, starting_balance: str | None):
    """Project the balance month by month.

    Examples:
        famfin forecast cash-flow
        famfin forecast cash-flow --months 12 --starting-balance 2500
    """
    db = ctx.obj["db"]
    user_id = ctx.obj["user"]
    if starting_balance is None:
        balance = AccountService(db, ctx.obj["clock"]).total_balance(user_id)
    else:
        balance = amount_or_exit(ctx, starting_balance, positive=False)

    projection = ProjectionService(db, ctx.obj["clock"]).calculate_cash_flow_projection(
        user_id, balance, months_ahead=months
    )
    click.echo(f"{'Month':8s} {'Income':>12s} {'Expenses':>12s} {'Balance':>12s} {'Projected':>12s}")
    for month in projection:
        click.echo(
            f"{month.label:8s} {month.income:>12,.2f} {month.expenses:>12,.2f} "
            f"{month.balance:>12,.2f} {month.projected_balance:>12,.2f}"
        )


@forecast_group.command("insights")
@click.pass_context
def insights(ctx):
    """Compare this month's spending with last month's."""
    service = ProjectionService(ctx.obj["db"], ctx.obj["clock"])
    results = service.get_financial_insights(ctx.obj["user"])
    if not results:
        click.echo("No insights yet.")
        return
    for insight in results:
        click.echo(f"[{insight.severity.value}] {insight.title}: {insight.description}")


@forecast_group.command("retrospective")
@click.pass_context
def show_retrospective(ctx):
    """Summarize last month: totals, top categories, cards, members and habits."""
    db = ctx.obj["db"]
    user_id = ctx.obj["user"]
    today = ctx.obj["today"]
    transactions = db.list_transactions(user_id)

    summary = retrospective.calculate_monthly_retrospective(transactions, db.list_categories(user_id), today)
    click.echo(f"\nRetrospective {summary.month:%m/%Y}")
    click.echo(f"Income:  R$ {summary.total_income:>12,.2f} ({summary.income_change:+.0f}%)")
    click.echo(f"Expense: R$ {summary.total_expense:>12,.2f} ({summary.expense_change:+.0f}%)")
    click.echo(f"Balance: R$ {summary.balance:>12,.2f} ({summary.balance_percent:.0f}% of income)")
    click.echo(f"Days without expenses: {summary.days_without_expenses}")
    if summary.biggest_expense:
        click.echo(f"Biggest expense: {summary.biggest_expense.description} (R$ {summary.biggest_expense.amount:,.2f})")
    if summary.biggest_income:
        click.echo(f"Biggest income: {summary.biggest_income.description} (R$ {summary.biggest_income.amount:,.2f})")

    if summary.top_categories:
        click.echo("\nTop categories:")
        for share in summary.top_categories:
            click.echo(f"  {share.name:24s} R$ {share.amount:>10,.2f} ({share.percent:.0f}%)")

    groups = (
        ("By card", retrospective.expenses_by_card(transactions, db.list_credit_cards(user_id), today)),
        ("By member", retrospective.expenses_by_member(transactions, db.list_family_members(user_id), today)),
    )
    for label, spending in groups:
        if not spending:
            continue
        click.echo(f"\n{label}:")
        for group in spending:
            click.echo(f"  {group.name:24s} R$ {group.amount:>10,.2f} ({group.count})")

    patterns = retrospective.spending_patterns(transactions, today)
    if patterns.by_weekday:
        click.echo("\nBy weekday:")
        for group in patterns.by_weekday:
            click.echo(f"  {group.name:24s} R$ {group.amount:>10,.2f} ({group.count})")
    click.echo(f"\nAverage per day: R$ {patterns.average_per_day:,.2f}")


def register_commands(cli):
    """Register forecast commands with main CLI."""
    cli.add_command(forecast_group, name="forecast")
