from decimal import Decimal
from sqlalchemy import Integer, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .base import Base

class SaleItem(Base):
    __tablename__ = "sale_item"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="sale_item_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="sale_item_unit_price_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[int] = mapped_column(ForeignKey("sale.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # price captured at sale time, never follows product.price afterwards
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    product = relationship("Product", lazy="raise")
    sale = relationship("Sale", back_populates="items", lazy="raise")
