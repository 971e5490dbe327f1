"""
Flask CLI commands.

Commands:
- flask init-db: Create the database tables
- flask create-user: Create a store owner account
"""

import click
from storemanager.database import db_session, create_all
from storemanager.exceptions import BusinessLogicError


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every table that does not exist yet."""
        create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='Owner email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Owner password')
    @click.option('--full-name', default='', help='Display name')
    def create_user(email, password, full_name):
        """Create a new store owner account."""
        from storemanager.services.auth_service import register_user

        try:
            user = register_user(db_session, email, password, full_name)
        except BusinessLogicError as e:
            click.echo(click.style(f'Error: {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('User created successfully!', fg='green', bold=True))
        click.echo(f'   Email: {user.email}')
        click.echo(f'   ID: {user.id}')
