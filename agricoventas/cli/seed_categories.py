# agricoventas/cli/seed_categories.py
import asyncio

import click
from sqlalchemy import select

from agricoventas.database import async_session
from agricoventas.models.category import Category

DEFAULT_CATEGORIES = {
    "Frutas": ["Frutas tropicales", "Cítricos", "Frutas de clima frío"],
    "Verduras y hortalizas": ["Hortalizas de hoja", "Tubérculos", "Legumbres frescas"],
    "Granos y cereales": ["Café", "Cacao", "Arroz", "Maíz"],
    "Lácteos y huevos": ["Leche y derivados", "Huevos"],
    "Cárnicos": ["Res", "Cerdo", "Aves"],
    "Hierbas y especias": ["Aromáticas", "Medicinales"],
    "Insumos agrícolas": ["Semillas", "Fertilizantes orgánicos"],
}


@click.command("seed-categories")
def seed_categories():
    """Insert the default two-level category tree. Existing names are left untouched."""

    async def _seed():
        created = 0
        async with async_session() as session:
            result = await session.execute(select(Category))
            by_name = {c.name: c for c in result.scalars().all()}

            for parent_name, children in DEFAULT_CATEGORIES.items():
                parent = by_name.get(parent_name)
                if parent is None:
                    parent = Category(name=parent_name)
                    session.add(parent)
                    await session.flush()
                    by_name[parent_name] = parent
                    created += 1

                for child_name in children:
                    if child_name in by_name:
                        continue
                    child = Category(name=child_name, parent_id=parent.id)
                    session.add(child)
                    by_name[child_name] = child
                    created += 1

            await session.commit()
        click.echo(f"Seeded {created} categories ({len(by_name)} total)")

    asyncio.run(_seed())


if __name__ == "__main__":
    seed_categories()
