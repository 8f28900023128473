"""CLI tools for case workflow administration."""

import click

from app.core.errors import CaseWorkflowError
from app.db.enums import Role
from app.db.session import SessionLocal


@click.group()
def cli():
    """Case workflow CLI tools."""
    pass


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option("--name", required=True, help="Display name")
@click.option(
    "--role",
    required=True,
    type=click.Choice([r.value for r in Role]),
    help="Role value",
)
@click.option("--team", default=None, help="Team name (created if missing)")
def create_user(email: str, name: str, role: str, team: str | None):
    """
    Create an active user.

    Example:
        python -m app.cli create-user --email bd@example.com --name "Asha" --role bd --team North
    """
    from app.services import user_service

    db = SessionLocal()
    try:
        user = user_service.create_user(db, email, name, role, team_name=team)
        click.echo(f"✓ Created user: {user.email}")
        click.echo(f"  ID: {user.id}")
        click.echo(f"  Role: {user.role}")
    except CaseWorkflowError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User to issue a session token for")
def issue_token(email: str):
    """
    Print a session JWT for a user (local testing and service calls).

    Example:
        python -m app.cli issue-token --email bd@example.com
    """
    from app.core.security import create_session_token
    from app.services import user_service

    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user or not user.is_active:
            click.echo(f"❌ Active user not found: {email}")
            return
        click.echo(
            create_session_token(user.id, user.role, user.token_version, team_id=user.team_id)
        )
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m app.cli revoke-sessions --email "user@example.com"
    """
    from app.services import user_service

    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        old_version = user.token_version
        user_service.revoke_all_sessions(db, user.id)
        db.refresh(user)

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    finally:
        db.close()


@cli.command()
@click.option("--dry-run", is_flag=True, help="Preview changes without applying")
def backfill_stages(dry_run: bool):
    """
    Move leads off legacy case stages (KYP_PENDING, KYP_COMPLETE, ADMITTED, IPD_DONE).

    Each migrated lead gets one appended stage history row. Legacy hospital
    name lists are converted to suggestion rows.

    Example:
        python -m app.cli backfill-stages --dry-run
        python -m app.cli backfill-stages
    """
    from app.services import stage_backfill_service

    db = SessionLocal()
    try:
        if dry_run:
            click.echo("🔍 DRY RUN - no changes will be made")
            click.echo()

        report = stage_backfill_service.backfill_stages(db, dry_run=dry_run)
        for lead_ref, from_stage, to_stage in report.moves:
            click.echo(f"  {lead_ref}: {from_stage} → {to_stage}")

        click.echo()
        verb = "Would migrate" if dry_run else "Migrated"
        click.echo(f"✓ {verb} {report.leads_migrated} lead(s)")
        click.echo(f"✓ {report.suggestions_created} hospital suggestion row(s)")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    cli()
