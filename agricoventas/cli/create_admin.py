# agricoventas/cli/create_admin.py
import asyncio

import click
from sqlalchemy import or_, select

from agricoventas.core.config import get_settings
from agricoventas.core.enums import SubscriptionType, UserType
from agricoventas.core.security import hash_password
from agricoventas.database import async_session
from agricoventas.models.user import User


@click.command("create-admin")
@click.option("--username", prompt=True, help="Admin username")
@click.option("--email", default=None, help="Defaults to <username>@ the admin email domain")
@click.option("--first-name", default="Admin", show_default=True)
@click.option("--last-name", default="Agricoventas", show_default=True)
@click.password_option(help="Admin password")
def create_admin(username, email, first_name, last_name, password):
    """Create an ADMIN account. Admins cannot self-register through the API."""
    settings = get_settings()
    email = email or f"{username}@{settings.ADMIN_EMAIL_DOMAIN}"

    async def _create():
        async with async_session() as session:
            existing = await session.execute(
                select(User.id).where(or_(User.username == username, User.email == email))
            )
            if existing.first():
                click.echo(f"A user with username {username} or email {email} already exists")
                return False

            session.add(User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                user_type=UserType.ADMIN,
                subscription_type=SubscriptionType.NORMAL,
                is_active=True,
            ))
            await session.commit()
            click.echo(f"Admin {username} <{email}> created")
            return True

    if not asyncio.run(_create()):
        raise SystemExit(1)


if __name__ == "__main__":
    create_admin()
