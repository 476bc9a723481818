import os

import click
from flask import current_app
from flask.cli import FlaskGroup

from confportal.app import create_app, db
from confportal.models import User
from confportal.services.user_directory import find_user_by_email, get_user
from confportal.shared.certificates import generate_for_config
from confportal.shared.storage import archive_certificate, write_atomic


cli = FlaskGroup(create_app=create_app)


@cli.command("create_db")
def create_db():
    """Create tables for a fresh database."""
    db.create_all()
    click.echo("ok")


@cli.command("seed_admin")
@click.option("--email", "email", required=True)
@click.option("--first-name", default="")
@click.option("--last-name", default="")
def seed_admin(email: str, first_name: str, last_name: str):
    """Create an approved admin user, or promote an existing one."""
    user = find_user_by_email(email)
    if not user:
        user = User(email=email, first_name=first_name, last_name=last_name)
        db.session.add(user)
    user.role = "admin"
    user.approved = True
    db.session.commit()
    click.echo(f"admin {user.email} id={user.id}")


@cli.command("gen_cert")
@click.option("--user-id", "user_id", required=True, type=int)
def gen_cert(user_id: int):
    """Generate and archive the certificate for a user."""
    user = get_user(user_id)
    if not user:
        click.echo("Not found", err=True)
        return
    result = generate_for_config(user.first_name, user.last_name, current_app.config)
    path, digest = archive_certificate(
        current_app.config["SITE_ROOT"], user.id, result.filename, result.pdf_bytes
    )
    click.echo(f"{path} sha256={digest}")


@cli.command("gen_sample_cert")
@click.option("--name", "name", default="Jordan A. Participant")
@click.option("--out", "out_path", default=None)
def gen_sample_cert(name: str, out_path: str | None):
    """Render a certificate for an arbitrary name without a user row."""
    first, _, last = name.strip().rpartition(" ")
    if not first:
        first, last = last, ""
    config = current_app.config
    result = generate_for_config(first, last, config)
    if not out_path:
        out_path = os.path.join(config["SITE_ROOT"], "certificates", "_samples", result.filename)
    write_atomic(os.path.abspath(out_path), result.pdf_bytes)
    click.echo(f"OK {out_path}")


if __name__ == "__main__":
    cli()
