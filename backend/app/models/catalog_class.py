from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class CatalogClass(Base, TimestampMixin):
    """A catalog product record ("class")."""

    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    special_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    main_category: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    quality: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)  # a.k.a. group
    class_name: Mapped[str] = mapped_column(String(255), nullable=False)
    class_name_arabic: Mapped[str | None] = mapped_column(String(255), nullable=True)
    class_name_english: Mapped[str | None] = mapped_column(String(255), nullable=True)
    class_features: Mapped[str | None] = mapped_column(Text, nullable=True)
    class_weight: Mapped[Decimal | None] = mapped_column(Numeric(12, 3), nullable=True)  # kg
    class_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    class_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    class_video: Mapped[str | None] = mapped_column(String(500), nullable=True)  # /uploads/<file>
