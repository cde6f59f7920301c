from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import (
    CursorResult,
    Date,
    Integer,
    String,
    Text,
    UniqueConstraint,
    delete,
    select,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.domain.models import MetricRecord, ProductRecord, SaleRecord
from app.repositories.base import AbstractBusinessDataRepository


class Base(DeclarativeBase):
    pass


class ProductORM(Base):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("user_id", "id", name="uq_products_user_id"),)

    # Surrogate key keeps insertion order stable across updates
    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    # Gesamter Record als JSON, Spalten nur für Filter und Sortierung
    data: Mapped[str] = mapped_column(Text, nullable=False)


class SaleORM(Base):
    __tablename__ = "sales"
    __table_args__ = (UniqueConstraint("user_id", "id", name="uq_sales_user_id"),)

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    sale_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)


class MetricORM(Base):
    __tablename__ = "business_metrics"
    __table_args__ = (UniqueConstraint("user_id", "id", name="uq_business_metrics_user_id"),)

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    recorded_on: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)


async def _upsert(
    session: AsyncSession,
    orm_class: type[ProductORM] | type[SaleORM] | type[MetricORM],
    user_id: str,
    record_id: str,
    **columns: Any,
) -> None:
    """Überschreibt eine vorhandene Zeile (gleiche Position) oder legt sie an."""
    result = await session.execute(
        select(orm_class).where(orm_class.id == record_id, orm_class.user_id == user_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        session.add(orm_class(id=record_id, user_id=user_id, **columns))
        return
    for name, value in columns.items():
        setattr(row, name, value)


class SQLiteBusinessDataRepository(AbstractBusinessDataRepository):
    """
    Speichert Records pro User; ``id`` ist pro User eindeutig, ein erneutes
    Speichern überschreibt wie im In-Memory Repository.
    """

    def __init__(self, database_url: str) -> None:
        self.engine = create_async_engine(database_url)
        self.async_session_maker = async_sessionmaker(self.engine, expire_on_commit=False)

    async def initialize(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def list_products(self, user_id: str) -> list[ProductRecord]:
        async with self.async_session_maker() as session:
            result = await session.execute(
                select(ProductORM).where(ProductORM.user_id == user_id).order_by(ProductORM.pk)
            )
            return [ProductRecord.model_validate_json(row.data) for row in result.scalars()]

    async def get_product(self, user_id: str, product_id: str) -> ProductRecord | None:
        async with self.async_session_maker() as session:
            result = await session.execute(
                select(ProductORM).where(
                    ProductORM.id == product_id, ProductORM.user_id == user_id
                )
            )
            orm_product = result.scalar_one_or_none()
            if orm_product:
                return ProductRecord.model_validate_json(orm_product.data)
            return None

    async def save_product(self, user_id: str, product: ProductRecord) -> ProductRecord:
        async with self.async_session_maker() as session, session.begin():
            await _upsert(session, ProductORM, user_id, product.id, data=product.model_dump_json())
        return product

    async def update_product(self, user_id: str, product: ProductRecord) -> ProductRecord:
        return await self.save_product(user_id, product)

    async def delete_product(self, user_id: str, product_id: str) -> bool:
        async with self.async_session_maker() as session, session.begin():
            result = await session.execute(
                delete(ProductORM).where(
                    ProductORM.id == product_id, ProductORM.user_id == user_id
                )
            )
            if isinstance(result, CursorResult):
                return bool(result.rowcount > 0)
            return False

    # ------------------------------------------------------------------
    # Sales & Metrics
    # ------------------------------------------------------------------

    async def list_sales(self, user_id: str) -> list[SaleRecord]:
        async with self.async_session_maker() as session:
            result = await session.execute(
                select(SaleORM)
                .where(SaleORM.user_id == user_id)
                .order_by(SaleORM.sale_date.desc(), SaleORM.pk)
            )
            return [SaleRecord.model_validate_json(row.data) for row in result.scalars()]

    async def save_sale(self, user_id: str, sale: SaleRecord) -> SaleRecord:
        async with self.async_session_maker() as session, session.begin():
            await _upsert(
                session,
                SaleORM,
                user_id,
                sale.id,
                sale_date=sale.sale_date,
                data=sale.model_dump_json(),
            )
        return sale

    async def list_metrics(self, user_id: str) -> list[MetricRecord]:
        async with self.async_session_maker() as session:
            result = await session.execute(
                select(MetricORM)
                .where(MetricORM.user_id == user_id)
                .order_by(MetricORM.recorded_on.desc(), MetricORM.pk)
            )
            return [MetricRecord.model_validate_json(row.data) for row in result.scalars()]

    async def save_metric(self, user_id: str, metric: MetricRecord) -> MetricRecord:
        async with self.async_session_maker() as session, session.begin():
            await _upsert(
                session,
                MetricORM,
                user_id,
                metric.id,
                recorded_on=metric.recorded_on,
                data=metric.model_dump_json(),
            )
        return metric
