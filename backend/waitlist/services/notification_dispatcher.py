"""Notification Dispatcher - best-effort mail side effects of subscription transitions.

Invariants:
    - Every delivery runs in its own asyncio task; callers never see transport exceptions
    - send_verification waits at most send_timeout_seconds, then reports PENDING
      and lets the task finish in the background
    - Owner alerts are fire-and-forget: the caller gets the task, never awaits it
    - Detached tasks are strongly referenced until done (no silent GC cancellation)
    - Failures are logged once and never retried

Design Decisions:
    - Task handoff instead of awaiting the transport inline: a slow SMTP server
      costs subscribe at most the bounded wait
    - drain() exists for shutdown and tests
"""

import asyncio
import logging
from typing import Coroutine

from waitlist.core.domain_types import DeliveryOutcome
from waitlist.core.errors import MailDeliveryError
from waitlist.core.format_email import (
    MailContent,
    format_confirmed_alert,
    format_new_interest_alert,
    format_owner_message,
    format_verification_email,
)
from waitlist.core.repository_protocols import Mailer

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Hands mail work to detached tasks and reports bounded outcomes."""

    def __init__(
        self,
        mailer: Mailer,
        owner_email: str,
        site_name: str,
        send_timeout_seconds: float = 10.0,
    ):
        self.mailer = mailer
        self.owner_email = owner_email
        self.site_name = site_name
        self.send_timeout_seconds = send_timeout_seconds
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_live(self) -> bool:
        return self.mailer.is_live

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def send_verification(
        self, email: str, verify_url: str, ttl_hours: int = 24,
    ) -> DeliveryOutcome:
        """Deliver the verification mail, waiting a bounded time for the outcome."""
        content = format_verification_email(verify_url, self.site_name, ttl_hours)
        task = self._spawn(self._deliver(email, content))
        done, _ = await asyncio.wait({task}, timeout=self.send_timeout_seconds)
        if not done:
            logger.warning(
                "Verification mail still in flight after timeout",
                extra={"email": email, "delivery": DeliveryOutcome.PENDING.value},
            )
            return DeliveryOutcome.PENDING
        return task.result()

    def alert_new_interest(self, email: str, is_new: bool) -> asyncio.Task:
        return self._notify_owner(
            format_new_interest_alert(email, self.site_name, is_new),
        )

    def alert_confirmed(self, email: str) -> asyncio.Task:
        return self._notify_owner(format_confirmed_alert(email, self.site_name))

    def alert_message(self, email: str, message: str | None) -> asyncio.Task:
        return self._notify_owner(
            format_owner_message(email, message, self.site_name),
        )

    async def drain(self) -> None:
        """Wait for every detached delivery to finish."""
        while True:
            running = [t for t in self._tasks if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    def _notify_owner(self, content: MailContent) -> asyncio.Task:
        return self._spawn(self._deliver(self.owner_email, content))

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, recipient: str, content: MailContent) -> DeliveryOutcome:
        try:
            await self.mailer.send(recipient, content)
        except MailDeliveryError as e:
            logger.error(
                f"Failed to send mail: {e.message}",
                extra={
                    "email": recipient, "error_code": e.code,
                    "delivery": DeliveryOutcome.FAILED.value,
                },
            )
            return DeliveryOutcome.FAILED
        except Exception as e:
            # transport bugs must not escape a detached task
            logger.error(
                f"Unexpected mail transport error: {e}",
                extra={"email": recipient, "delivery": DeliveryOutcome.FAILED.value},
                exc_info=True,
            )
            return DeliveryOutcome.FAILED
        return DeliveryOutcome.SENT if self.mailer.is_live else DeliveryOutcome.LOGGED
