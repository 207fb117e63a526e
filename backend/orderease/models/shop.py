from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderease.models.base import Base, JSONType, as_utc, utcnow


class Shop(Base):
    __tablename__ = "shops"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    owner_username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    owner_password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)

    settings: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    # {"statuses": [{"value", "label", "type", "isFinal", "actions": [...]}]}
    order_status_flow: Mapped[dict] = mapped_column(JSONType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    products = relationship("Product", back_populates="shop")

    def is_expired(self, now: datetime | None = None) -> bool:
        return as_utc(self.valid_until) < (now or utcnow())

    def remaining_days(self, now: datetime | None = None) -> int:
        seconds = (as_utc(self.valid_until) - (now or utcnow())).total_seconds()
        return int(seconds / 86400)
