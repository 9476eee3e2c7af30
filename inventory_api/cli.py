"""CLI for the Inventory Manager API authorization layer."""
import sys

import click

from inventory_api.domain.rbac.patterns import matches, pattern_violation


@click.group()
def cli():
    """Inventory Manager API CLI."""
    pass


@cli.command("validate-pattern")
@click.argument("patterns", nargs=-1, required=True)
def validate_pattern(patterns):
    """Check role action patterns against the pattern grammar."""
    failed = False
    for pattern in patterns:
        reason = pattern_violation(pattern)
        if reason:
            failed = True
            click.echo(f"✗ {pattern}: {reason}", err=True)
        else:
            click.echo(f"✓ {pattern}")
    if failed:
        sys.exit(1)


@cli.command("match")
@click.argument("action")
@click.argument("pattern")
def match(action: str, pattern: str):
    """Show whether ACTION is covered by PATTERN."""
    result = matches(action, pattern)
    click.echo(f"{action} {'matches' if result else 'does not match'} {pattern}")
    if not result:
        sys.exit(1)


@cli.command("has-permission")
@click.argument("user_id", type=int)
@click.argument("action")
@click.option("--database-url", default=None, help="Override DATABASE_URL")
def has_permission(user_id: int, action: str, database_url: str):
    """Evaluate ACTION for USER_ID against the roles stored in the database."""
    from sqlalchemy.orm import Session

    from inventory_api.adapters.postgres.session import build_engine, get_engine
    from inventory_api.adapters.postgres.stores import PostgresRoleStore, PostgresUserStore
    from inventory_api.domain.rbac.policy_engine import PolicyEngine
    from inventory_api.domain.rbac.service import AuthorizationService
    from inventory_api.settings import get_settings

    engine = build_engine(database_url) if database_url else get_engine()
    with Session(engine) as db:
        service = AuthorizationService(
            PostgresRoleStore(db),
            PostgresUserStore(db),
            PolicyEngine(default_combination=get_settings().ACTION_COMBINATION),
        )
        decision = service.check_permission(user_id, action)

    click.echo(f"{'ALLOW' if decision.allowed else 'DENY'} ({decision.reason_code.value})")
    if not decision.allowed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
