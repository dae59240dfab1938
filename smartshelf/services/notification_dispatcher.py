"""Delivery of fired notifications and handling of taps."""

import logging
import typing as t
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartshelf.core.config import SETTINGS
from smartshelf.core.database import ASYNC_SESSION_MAKER
from smartshelf.core.models import (
    NotificationHistory,
    NotificationKind,
    UserNotificationSettings,
)
from smartshelf.schemas.notifications import (
    ExpiredAlertPayload,
    ExpiryReminderPayload,
    NotificationTapResponse,
    parse_payload,
)
from smartshelf.services.notification_log import ScheduledNotificationLog
from smartshelf.utils.dates import utc_now

LOGGER: logging.Logger = logging.getLogger(__name__)

TEMPLATES_DIR: Path = Path(__file__).parent.parent / "templates"
EMAIL_ENV: Environment = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)


@dataclass(frozen=True)
class NotificationContent:
    """Title and body shown to the user."""

    title: str
    body: str


def build_content(
    payload: ExpiryReminderPayload | ExpiredAlertPayload,
) -> NotificationContent:
    """Build the user-facing text of a notification.

    Args:
        payload (ExpiryReminderPayload | ExpiredAlertPayload):
            The validated payload.

    Returns:
        NotificationContent: The title and body.
    """
    match payload:
        case ExpiryReminderPayload():
            return NotificationContent(
                title="🕒 Expiry Reminder",
                body=(
                    f"{payload.item_name} expires in "
                    f"{SETTINGS.reminder_lead_days} days!"
                ),
            )
        case _:
            return NotificationContent(
                title="⚠️ Item Expired",
                body=(
                    f"{payload.item_name} has expired! "
                    "Please check and remove it."
                ),
            )


def render_template(template_name: str, **context: t.Any) -> str:
    """Render a Jinja2 template with the given context.

    Args:
        template_name (str): The name of the template file.
        **context: Context variables for rendering the template.

    Returns:
        str: The rendered template as a string.
    """
    return EMAIL_ENV.get_template(template_name).render(**context)


async def send_notification_email(
    to_email: str,
    content: NotificationContent,
    payload: ExpiryReminderPayload | ExpiredAlertPayload,
) -> bool:
    """E-mail a notification (if SMTP is configured).

    Args:
        to_email (str): Recipient email address.
        content (NotificationContent): The notification text.
        payload (ExpiryReminderPayload | ExpiredAlertPayload):
            The payload the notification was built from.

    Returns:
        bool: True if email was sent successfully, False otherwise.
    """
    if not SETTINGS.smtp_enabled:
        LOGGER.debug("SMTP not enabled, skipping email")
        return False

    try:
        message: MIMEMultipart = MIMEMultipart()
        message["From"] = SETTINGS.smtp_from_email
        message["To"] = to_email
        message["Subject"] = f"[{SETTINGS.app_name}] {content.title}"
        message.attach(
            MIMEText(
                render_template(
                    "notifications/notification.txt",
                    title=content.title,
                    body=content.body,
                    item_name=payload.item_name,
                    expiry_date=payload.expiry_date.isoformat(),
                    app_name=SETTINGS.app_name,
                ),
                "plain",
            )
        )

        await aiosmtplib.send(
            message,
            hostname=SETTINGS.smtp_host,
            port=SETTINGS.smtp_port,
            username=SETTINGS.smtp_user if SETTINGS.smtp_user else None,
            password=(
                SETTINGS.smtp_password if SETTINGS.smtp_password else None
            ),
            use_tls=SETTINGS.smtp_port == 465,
            start_tls=SETTINGS.smtp_port == 587,
            timeout=10,
        )
        LOGGER.info("Notification email sent to %s", to_email)
        return True

    except Exception:  # pylint: disable=broad-except
        LOGGER.exception("Failed to send notification email to %s", to_email)
        return False


async def deliver_notification(
    db: AsyncSession,
    user_id: str,
    notification_id: str,
    payload: ExpiryReminderPayload | ExpiredAlertPayload,
) -> NotificationHistory:
    """Record a delivered notification.

    Args:
        db (AsyncSession): The database session.
        user_id (str): The namespace the trigger belongs to.
        notification_id (str): The host id that fired.
        payload (ExpiryReminderPayload | ExpiredAlertPayload):
            The validated payload.

    Returns:
        NotificationHistory: The new history row.
    """
    entry: NotificationHistory = NotificationHistory(
        user_id=user_id,
        item_id=payload.item_id,
        notification_id=notification_id,
        type=payload.kind,
        sent_at=utc_now(),
    )
    db.add(entry)

    if payload.kind == NotificationKind.EXPIRY_REMINDER:
        await ScheduledNotificationLog(db, user_id).mark_sent(notification_id)

    await db.flush()
    return entry


async def fire_notification(
    namespace: str,
    notification_id: str,
    payload: t.Dict[str, t.Any],
    session_maker: async_sessionmaker[AsyncSession] = ASYNC_SESSION_MAKER,
) -> None:
    """Job run by the scheduler when a trigger fires.

    Args:
        namespace (str): The user the trigger belongs to.
        notification_id (str): The host id that fired.
        payload (t.Dict[str, t.Any]): The raw payload stored on the job.
        session_maker (async_sessionmaker[AsyncSession]): Session factory.
    """
    try:
        typed: ExpiryReminderPayload | ExpiredAlertPayload = parse_payload(
            payload
        )
    except ValidationError:
        LOGGER.warning(
            "Dropping notification %s: bad payload", notification_id
        )
        return

    content: NotificationContent = build_content(typed)
    LOGGER.info(
        "Notification %s for %s: %s - %s",
        notification_id,
        namespace,
        content.title,
        content.body,
    )

    try:
        async with session_maker() as session:
            await deliver_notification(
                session, namespace, notification_id, typed
            )
            settings: UserNotificationSettings | None = (
                await session.execute(
                    select(UserNotificationSettings).where(
                        UserNotificationSettings.user_id == namespace
                    )
                )
            ).scalar_one_or_none()
            await session.commit()

        if settings is not None and settings.email:
            await send_notification_email(settings.email, content, typed)

    except Exception:  # pylint: disable=broad-except
        LOGGER.exception("Error delivering notification %s", notification_id)


async def handle_notification_response(
    db: AsyncSession,
    user_id: str,
    notification_id: str,
    payload: t.Mapping[str, t.Any],
) -> NotificationTapResponse:
    """Handle a tap on a delivered notification.

    Args:
        db (AsyncSession): The database session.
        user_id (str): The user who tapped.
        notification_id (str): The notification that was tapped.
        payload (t.Mapping[str, t.Any]): The payload the client received.

    Raises:
        pydantic.ValidationError: If the payload is not a known variant.

    Returns:
        NotificationTapResponse: The item to navigate to.
    """
    typed: ExpiryReminderPayload | ExpiredAlertPayload = parse_payload(payload)

    entry: NotificationHistory | None = (
        await db.execute(
            select(NotificationHistory)
            .where(
                NotificationHistory.user_id == user_id,
                NotificationHistory.notification_id == notification_id,
            )
            .order_by(NotificationHistory.sent_at.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    if entry is not None and not entry.was_clicked:
        entry.was_clicked = True
        entry.clicked_at = utc_now()
        await db.flush()

    LOGGER.info(
        "Notification tapped: %s (%s)", notification_id, typed.kind.value
    )
    return NotificationTapResponse(item_id=typed.item_id, kind=typed.kind)


async def list_history(
    db: AsyncSession, user_id: str, limit: int = 50
) -> t.Sequence[NotificationHistory]:
    """Most recent delivered notifications of a user, newest first.

    Args:
        db (AsyncSession): The database session.
        user_id (str): The user whose history to read.
        limit (int): Maximum number of rows.

    Returns:
        t.Sequence[NotificationHistory]: The history rows.
    """
    return (
        (
            await db.execute(
                select(NotificationHistory)
                .where(NotificationHistory.user_id == user_id)
                .order_by(NotificationHistory.sent_at.desc())
                .limit(limit)
            )
        )
        .scalars()
        .all()
    )
