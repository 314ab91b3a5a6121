import click
from flask import Flask, current_app
from flask.cli import AppGroup

from praktijk.clients import ENCRYPTED_FIELDS
from praktijk.crypto import SaltNotFoundError, decrypt_fields, user_key
from praktijk.db import db
from praktijk.model import Appointment, Client


def register_encryption_commands(app: Flask) -> None:
    encryption_cli = AppGroup("encryption", help="Field encryption commands")

    @encryption_cli.command("status")
    def status() -> None:
        """Show the field encryption settings"""
        settings = current_app.config["ENCRYPTION"]
        if settings.uses_dev_secret:
            click.echo("Server secret: development default (set PRAKTIJK_ENCRYPTION_SECRET)")
        else:
            click.echo("Server secret: configured")
        click.echo(f"KDF iterations: {settings.kdf_iterations or 'default'}")

    @encryption_cli.command("audit")
    @click.argument("user_id")
    def audit(user_id: str) -> None:
        """Report the stored fields of a user that can't be decrypted"""
        clients = db.session.scalars(
            db.select(Client).filter(Client.user_id == user_id, Client.deleted_at.is_(None))
        ).all()
        appointments = db.session.scalars(
            db.select(Appointment).filter(
                Appointment.user_id == user_id, Appointment.deleted_at.is_(None)
            )
        ).all()

        failures = 0
        try:
            with user_key(user_id) as key:
                for client in clients:
                    result = decrypt_fields({f: getattr(client, f) for f in ENCRYPTED_FIELDS}, key)
                    for name in sorted(result.failed):
                        click.echo(f"Client {client.id}: {name} can't be decrypted")
                        failures += 1

                for appointment in appointments:
                    result = decrypt_fields({"notes_encrypted": appointment.notes_encrypted}, key)
                    for name in sorted(result.failed):
                        click.echo(f"Appointment {appointment.id}: {name} can't be decrypted")
                        failures += 1
        except SaltNotFoundError:
            click.echo(f"No encryption key salt on record for user {user_id}.", err=True)
            raise click.exceptions.Exit(2)

        click.echo(
            f"Checked {len(clients)} clients and {len(appointments)} appointments, "
            f"{failures} undecryptable fields."
        )
        if failures:
            raise click.exceptions.Exit(1)

    app.cli.add_command(encryption_cli)
