from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import String, Numeric, Boolean, DateTime, JSON, CheckConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column
from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "product"
    __table_args__ = (
        CheckConstraint("price >= 0", name="product_price_non_negative"),
        CheckConstraint(
            "discount_price IS NULL OR discount_price < price",
            name="product_discount_below_price",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String, nullable=False, default="", server_default="")
    price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        server_default=text("0.00"),
    )
    discount_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    category: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    image: Mapped[str | None] = mapped_column(String, nullable=True)
    ingredients: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now()
    )

    @property
    def effective_price(self) -> Decimal:
        return self.discount_price if self.discount_price is not None else self.price
