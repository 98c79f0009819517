"""Ordered, fail-fast email dispatch.

Each step sends one message and yields a DispatchResult. The pipeline stops
at the first undelivered step; later steps are never attempted.
"""

from collections.abc import Sequence

from relay.models.checkout import DispatchResult, NotificationMessage
from relay.services.email_service import EmailSender, EmailServiceError
from relay.utils.logging import get_logger, log_email_dispatch

logger = get_logger(__name__)


class DispatchPipeline:
    """Runs send steps strictly in sequence.

    Usage:
        pipeline = DispatchPipeline(sender)
        results = pipeline.run([
            ("customer_download", download_message),
            ("operator_sale_alert", sale_message),
        ])
        if not DispatchPipeline.succeeded(results):
            ...
    """

    def __init__(self, sender: EmailSender) -> None:
        self._sender = sender

    def send_step(self, step: str, message: NotificationMessage) -> DispatchResult:
        """Send one message and capture the outcome.

        Only EmailServiceError is converted to a failed result; anything else
        is a programming error and propagates.
        """
        try:
            message_id = self._sender.send(message)
        except EmailServiceError as e:
            log_email_dispatch(logger, step, message.to, error=str(e))
            return DispatchResult(
                step=step,
                recipient=message.to,
                delivered=False,
                error=str(e),
            )

        log_email_dispatch(logger, step, message.to, message_id=message_id)
        return DispatchResult(
            step=step,
            recipient=message.to,
            delivered=True,
            message_id=message_id,
        )

    def run(self, steps: Sequence[tuple[str, NotificationMessage]]) -> list[DispatchResult]:
        """Send each message in order, stopping after the first failure.

        Args:
            steps: (step name, message) pairs in send order.

        Returns:
            One result per attempted step.
        """
        results: list[DispatchResult] = []
        for step, message in steps:
            result = self.send_step(step, message)
            results.append(result)
            if not result.delivered:
                skipped = [name for name, _ in steps[len(results):]]
                if skipped:
                    logger.warning("Dispatch stopped at %s; not attempted: %s", step, skipped)
                break
        return results

    @staticmethod
    def succeeded(results: Sequence[DispatchResult]) -> bool:
        """True when every attempted step was delivered."""
        return all(result.delivered for result in results)
