"""Admin CLI commands for managing user roles."""

import typer
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.services.roles import ADMIN_ROLE, assign_role, remove_role
from app.services.users import get_user_by_email

app = typer.Typer(help="Manage marketplace user roles.")


def _load_user(db: Session, email: str):
    user = get_user_by_email(db, email)
    if user is None:
        typer.echo(f"Error: User with email {email} not found.")
        raise typer.Exit(code=1)
    return user


@app.command("grant-role")
def grant_role(email: str, role: str = typer.Option(ADMIN_ROLE, help="Role name to grant.")):
    """Grant a role (admin by default) to a user by email."""
    db = SessionLocal()
    try:
        user = _load_user(db, email)
        if assign_role(db, user, role):
            db.commit()
            typer.echo(f"Role '{role}' granted to user with email: {email}")
        else:
            typer.echo(f"User with email {email} already has role '{role}'.")
    finally:
        db.close()


@app.command("revoke-role")
def revoke_role(email: str, role: str = typer.Option(ADMIN_ROLE, help="Role name to revoke.")):
    """Remove a role from a user by email."""
    db = SessionLocal()
    try:
        user = _load_user(db, email)
        if remove_role(db, user, role):
            db.commit()
            typer.echo(f"Role '{role}' revoked from user with email: {email}")
        else:
            typer.echo(f"User with email {email} does not have role '{role}'.")
    finally:
        db.close()


if __name__ == "__main__":
    app()
