"""SQLAlchemy database models."""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from smartshelf.core.database import Base


def generate_id() -> str:
    """Generate an opaque primary key."""
    return uuid.uuid4().hex


class ExpiryStatus(str, enum.Enum):
    """Freshness status of a fridge item."""

    SAFE = "safe"
    NEAR_EXPIRY = "near-expiry"
    EXPIRED = "expired"


class NotificationKind(str, enum.Enum):
    """Kind of scheduled notification."""

    EXPIRY_REMINDER = "expiry-reminder"
    EXPIRED_ALERT = "expired-alert"


class ItemCategory(str, enum.Enum):
    """Categories a fridge item can belong to."""

    DAIRY = "Dairy"
    MEAT = "Meat"
    VEGETABLES = "Vegetables"
    FRUITS = "Fruits"
    GRAINS = "Grains"
    BEVERAGES = "Beverages"
    SNACKS = "Snacks"
    FROZEN = "Frozen"
    OTHER = "Other"


class FridgeItem(Base):  # pylint: disable=too-few-public-methods
    """Fridge item model (user-owned)."""

    __tablename__ = "fridge_items"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=generate_id
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[ItemCategory] = mapped_column(
        Enum(ItemCategory), nullable=False, default=ItemCategory.OTHER
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    expiry_date: Mapped[date] = mapped_column(
        Date, nullable=False, index=True
    )
    qr_code_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
        onupdate=func.now(),  # pylint: disable=not-callable
    )

    __table_args__ = (Index("ix_fridge_items_user_id", "user_id"),)


class ScheduledNotification(Base):  # pylint: disable=too-few-public-methods
    """Durable log of notifications registered with the host."""

    __tablename__ = "scheduled_notifications"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=generate_id
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Not a foreign key: test triggers and deleted items keep their rows.
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    notification_id: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[NotificationKind] = mapped_column(
        Enum(NotificationKind), nullable=False
    )
    scheduled_for: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_sent: Mapped[bool] = mapped_column(default=False)
    is_cancelled: Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
        onupdate=func.now(),  # pylint: disable=not-callable
    )

    __table_args__ = (
        Index("ix_scheduled_notifications_notification_id", "notification_id"),
        Index("ix_scheduled_notifications_item_id", "item_id"),
    )


class NotificationHistory(Base):  # pylint: disable=too-few-public-methods
    """One row per delivered notification."""

    __tablename__ = "notification_history"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=generate_id
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    item_id: Mapped[str] = mapped_column(String(32), nullable=False)
    notification_id: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[NotificationKind] = mapped_column(
        Enum(NotificationKind), nullable=False
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    was_clicked: Mapped[bool] = mapped_column(default=False)
    clicked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
    )

    __table_args__ = (Index("ix_notification_history_user_id", "user_id"),)


class UserNotificationSettings(Base):  # pylint: disable=too-few-public-methods
    """Per-user notification preferences."""

    __tablename__ = "notification_settings"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    expiry_reminders_enabled: Mapped[bool] = mapped_column(default=True)
    expired_alerts_enabled: Mapped[bool] = mapped_column(default=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
        onupdate=func.now(),  # pylint: disable=not-callable
    )
