"""
Run notifications delivered over HTTP webhooks and Slack.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import NotificationSettings, ReportingOptions

logger = logging.getLogger(__name__)

TEST_STARTED = "test_started"
TEST_COMPLETED = "test_completed"
TEST_FAILED = "test_failed"
CRITICAL_ERROR = "critical_error"


class Notifier:
    """
    Deliver run lifecycle events to the channels a configuration enables.

    Delivery failures are logged and reported in the return value of
    :meth:`notify`; they never interrupt a run.
    """

    def __init__(
        self,
        settings: NotificationSettings,
        reporting: Optional[ReportingOptions] = None,
        timeout: int = 10,
        max_retries: int = 3,
    ):
        """
        Initialize notifier.

        Args:
            settings: Which events to send and to which channels
            reporting: Reporting options, source of the Slack webhook URL
            timeout: Request timeout in seconds
            max_retries: Maximum number of retries for transient errors
        """
        self.settings = settings
        self.reporting = reporting or ReportingOptions()
        self.timeout = timeout

        self.session = requests.Session()
        retry = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
            respect_retry_after_header=True,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> "Notifier":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _enabled(self, event: str) -> bool:
        return {
            TEST_STARTED: self.settings.on_test_start,
            TEST_COMPLETED: self.settings.on_test_complete,
            TEST_FAILED: self.settings.on_test_failure,
            CRITICAL_ERROR: self.settings.on_critical_error,
        }.get(event, False)

    def _post(self, channel: str, url: str, body: Dict[str, Any]) -> bool:
        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Failed to deliver %s notification to %s: %s", channel, url, e)
            return False
        logger.debug("Delivered %s notification to %s", channel, url)
        return True

    def _deliver(self, channel: str, event: str, payload: Dict[str, Any]) -> bool:
        if channel == "webhook":
            if not self.settings.webhook_url:
                logger.warning("Webhook channel enabled but no webhookUrl configured")
                return False
            return self._post(channel, self.settings.webhook_url, payload)

        if channel == "slack":
            if not self.reporting.slack_webhook:
                logger.warning("Slack channel enabled but no slackWebhook configured")
                return False
            body: Dict[str, Any] = {"text": payload["summary"]}
            if self.settings.slack_channel:
                body["channel"] = self.settings.slack_channel
            return self._post(channel, self.reporting.slack_webhook, body)

        if channel == "email":
            logger.warning(
                "Email notifications are not delivered by this tool (recipients: %s)",
                ", ".join(self.settings.email_recipients) or "none",
            )
            return False

        logger.warning("Unknown notification channel: %s", channel)
        return False

    def notify(self, event: str, summary: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, bool]:
        """
        Send *event* to every configured channel if the event is enabled.

        Returns:
            Mapping of channel name to whether delivery succeeded; empty when
            the event is disabled
        """
        if not self._enabled(event):
            logger.debug("Notification %s is disabled", event)
            return {}

        payload = {
            "event": event,
            "timestamp": datetime.now().isoformat(),
            "summary": summary,
            "details": details or {},
        }
        return {
            channel: self._deliver(channel, event, payload) for channel in self.settings.channels
        }
