"""
Table models for the order aggregate.

An order is stored across four tables: ``orders`` holds the root fields,
``deliveries`` and ``payments`` hold one row per order keyed by
``order_uid``, and ``items`` holds one row per order line. Item rows get a
surrogate ``id`` so the original line order can be reproduced on read.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderstream.database.base import Base


class OrderRecord(Base):
    """Root row of a stored order."""

    __tablename__ = "orders"

    order_uid: Mapped[str] = mapped_column(String(50), primary_key=True)
    track_number: Mapped[str] = mapped_column(String(50), nullable=False)
    entry: Mapped[str] = mapped_column(Text, nullable=False, default="")
    locale: Mapped[str] = mapped_column(Text, nullable=False, default="")
    internal_signature: Mapped[str] = mapped_column(Text, nullable=False, default="")
    customer_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    delivery_service: Mapped[str] = mapped_column(Text, nullable=False, default="")
    shardkey: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sm_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    oof_shard: Mapped[str] = mapped_column(Text, nullable=False, default="")

    delivery: Mapped["DeliveryRecord"] = relationship(
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
    )
    payment: Mapped["PaymentRecord"] = relationship(
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
    )
    items: Mapped[list["ItemRecord"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="ItemRecord.id",
    )


class DeliveryRecord(Base):
    """Delivery details, one row per order."""

    __tablename__ = "deliveries"

    order_uid: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("orders.order_uid", ondelete="CASCADE"),
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    zip: Mapped[str] = mapped_column(Text, nullable=False, default="")
    city: Mapped[str] = mapped_column(Text, nullable=False, default="")
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    region: Mapped[str] = mapped_column(Text, nullable=False, default="")
    email: Mapped[str] = mapped_column(String(100), nullable=False)

    order: Mapped[OrderRecord] = relationship(back_populates="delivery")


class PaymentRecord(Base):
    """Payment details, one row per order."""

    __tablename__ = "payments"

    order_uid: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("orders.order_uid", ondelete="CASCADE"),
        primary_key=True,
    )
    transaction: Mapped[str] = mapped_column(String(50), nullable=False)
    request_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    provider: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_dt: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    bank: Mapped[str] = mapped_column(Text, nullable=False, default="")
    delivery_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    goods_total: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    custom_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    order: Mapped[OrderRecord] = relationship(back_populates="payment")


class ItemRecord(Base):
    """One order line."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    order_uid: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("orders.order_uid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chrt_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    track_number: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    rid: Mapped[str] = mapped_column(Text, nullable=False, default="")
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sale: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    size: Mapped[str] = mapped_column(Text, nullable=False, default="")
    total_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    nm_id: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    brand: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    order: Mapped[OrderRecord] = relationship(back_populates="items")
