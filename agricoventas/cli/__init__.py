# agricoventas/cli/__init__.py
import click

from agricoventas.cli.create_admin import create_admin
from agricoventas.cli.create_tables import create_tables
from agricoventas.cli.seed_categories import seed_categories


@click.group()
def cli():
    """Agricoventas management commands"""


cli.add_command(create_admin)
cli.add_command(create_tables)
cli.add_command(seed_categories)


if __name__ == "__main__":
    cli()
