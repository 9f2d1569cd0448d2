"""
SQL-backed product catalog.

Reads the storefront's ``products``, ``promotions`` and ``features`` tables
through SQLAlchemy Core. Promotions without a product apply to every
product. Queries are blocking, so each lookup runs in a worker thread.
"""

import asyncio
import logging
from typing import Any, Optional

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    exists,
    func,
    literal,
    or_,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql import Select

from phonebot.schemas.product_schema import Product
from phonebot.tools.catalog import SIMILAR_LIMIT, ProductCatalog

logger = logging.getLogger(__name__)

metadata = MetaData()

products_table = Table(
    "products",
    metadata,
    Column("product_id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    Column("brand", String(100), nullable=False),
    Column("description", Text),
    Column("price", Integer, nullable=False),
    Column("colors", String(255)),
    Column("storage", String(255)),
    Column("release_date", Date),
    Column("warranty_period", Integer),
    Column("image_url", String(255)),
)

promotions_table = Table(
    "promotions",
    metadata,
    Column("promotion_id", Integer, primary_key=True),
    Column("product_id", Integer, ForeignKey("products.product_id"), nullable=True),
    Column("promotion_name", String(255), nullable=False),
)

features_table = Table(
    "features",
    metadata,
    Column("feature_id", Integer, primary_key=True),
    Column("product_id", Integer, ForeignKey("products.product_id"), nullable=False),
    Column("feature_name", String(255), nullable=False),
)


def create_tables(engine: Engine) -> None:
    """Create the catalog tables if they do not exist."""
    metadata.create_all(engine)


class SqlProductCatalog(ProductCatalog):
    """ProductCatalog over a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> "SqlProductCatalog":
        engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_engine(database_url, **engine_kwargs))

    # ------------------------------------------------------------------ #
    # Query plumbing
    # ------------------------------------------------------------------ #

    async def _query(self, stmt: Select) -> list[Product]:
        return await asyncio.to_thread(self._fetch, stmt)

    def _fetch(self, stmt: Select) -> list[Product]:
        logger.debug("Catalog query: %s", stmt)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
            if not rows:
                return []
            ids = [row["product_id"] for row in rows]
            promotions = self._promotions_for(conn, ids)
            features = self._features_for(conn, ids)

        store_wide = promotions.get(None, [])
        return [
            Product(
                product_id=row["product_id"],
                name=row["name"],
                brand=row["brand"],
                description=row["description"],
                price=int(row["price"]),
                colors=row["colors"],
                storage=row["storage"],
                release_date=row["release_date"],
                warranty_period=row["warranty_period"],
                image_url=row["image_url"],
                promotions=promotions.get(row["product_id"], []) + store_wide,
                features=features.get(row["product_id"], []),
            )
            for row in rows
        ]

    @staticmethod
    def _promotions_for(conn: Connection, ids: list[int]) -> dict[Optional[int], list[str]]:
        stmt = (
            select(promotions_table.c.product_id, promotions_table.c.promotion_name)
            .where(
                or_(
                    promotions_table.c.product_id.in_(ids),
                    promotions_table.c.product_id.is_(None),
                )
            )
            .order_by(promotions_table.c.promotion_id)
        )
        grouped: dict[Optional[int], list[str]] = {}
        for product_id, name in conn.execute(stmt):
            grouped.setdefault(product_id, []).append(name)
        return grouped

    @staticmethod
    def _features_for(conn: Connection, ids: list[int]) -> dict[int, list[str]]:
        stmt = (
            select(features_table.c.product_id, features_table.c.feature_name)
            .where(features_table.c.product_id.in_(ids))
            .order_by(features_table.c.feature_id)
        )
        grouped: dict[int, list[str]] = {}
        for product_id, name in conn.execute(stmt):
            grouped.setdefault(product_id, []).append(name)
        return grouped

    @staticmethod
    def _base() -> Select:
        return select(products_table).order_by(products_table.c.product_id)

    # ------------------------------------------------------------------ #
    # ProductCatalog
    # ------------------------------------------------------------------ #

    async def get_product(self, name: str) -> Optional[Product]:
        needle = name.lower().strip()
        if not needle:
            return None
        stmt = (
            self._base()
            .where(func.lower(products_table.c.name).contains(needle, autoescape=True))
            .limit(1)
        )
        results = await self._query(stmt)
        return results[0] if results else None

    async def find_product_in_text(self, text: str) -> Optional[Product]:
        stmt = (
            select(products_table)
            .where(literal(text.lower(), String).contains(func.lower(products_table.c.name)))
            .order_by(func.length(products_table.c.name).desc(), products_table.c.product_id)
            .limit(1)
        )
        results = await self._query(stmt)
        return results[0] if results else None

    async def find_by_price_range(
        self, min_price: int, max_price: int, name: Optional[str] = None
    ) -> list[Product]:
        stmt = self._base().where(products_table.c.price.between(min_price, max_price))
        if name:
            stmt = stmt.where(func.lower(products_table.c.name).contains(name.lower(), autoescape=True))
        return await self._query(stmt)

    async def find_by_brand(
        self, brand: str, feature: Optional[str] = None, color: Optional[str] = None
    ) -> list[Product]:
        stmt = self._base().where(func.lower(products_table.c.brand) == brand.lower())
        if feature:
            stmt = stmt.where(
                exists().where(
                    features_table.c.product_id == products_table.c.product_id,
                    func.lower(features_table.c.feature_name).contains(feature.lower(), autoescape=True),
                )
            )
        if color:
            stmt = stmt.where(func.lower(products_table.c.colors).contains(color.lower(), autoescape=True))
        return await self._query(stmt)

    async def suggest_similar(
        self, brand: str, exclude_name: str, limit: int = SIMILAR_LIMIT
    ) -> list[Product]:
        stmt = (
            self._base()
            .where(func.lower(products_table.c.brand) == brand.lower())
            .where(~func.lower(products_table.c.name).contains(exclude_name.lower(), autoescape=True))
            .limit(limit)
        )
        return await self._query(stmt)
