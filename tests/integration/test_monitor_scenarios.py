"""
Integration tests for the complete poll, compare and alert workflow.

These tests drive the monitor with the real quote fetcher and webhook
notifier, replacing only the HTTP sessions and the wall clock.
"""

import pytest
import requests
from datetime import datetime, timedelta
from unittest.mock import Mock

from index_watcher.config.models import WatcherConfig
from index_watcher.data_source import QuoteFetcher
from index_watcher.monitor import StockMonitor, TickOutcome
from index_watcher.notifier import WeChatNotifier


WEBHOOK_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send?key=test-key"

# 2024-01-03 is a Wednesday
WEDNESDAY_1440 = datetime(2024, 1, 3, 14, 40)
WEDNESDAY_1000 = datetime(2024, 1, 3, 10, 0)


def quote_body(current, previous=3000.0, open_price=3000.0):
    high = max(current, open_price)
    low = min(current, open_price)
    return (
        f'var hq_str_sh000001="上证指数,{open_price:.3f},{previous:.3f},{current:.3f},'
        f'{high:.3f},{low:.3f},0,0,285321480,318423487716";\n'
    )


def http_response(status_code=200, text="", payload=None):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {"errcode": 0, "errmsg": "ok"}
    return response


class Clock:
    """Settable wall clock shared by the fetcher and the monitor."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class TestMonitorScenarios:
    """End-to-end scenarios for the monitor."""

    @pytest.fixture
    def config(self):
        """Create test configuration."""
        return WatcherConfig(
            stock={"code": "sh000001", "threshold": 0.8},
            wechat={"webhook_url": WEBHOOK_URL},
        )

    def build(self, config, bodies, now):
        """Wire the monitor to mocked quote and webhook sessions."""
        clock = Clock(now)

        quote_session = Mock(spec=requests.Session)
        quote_session.get.side_effect = [http_response(text=body) for body in bodies]
        fetcher = QuoteFetcher(names=config.names, session=quote_session, clock=clock)

        webhook_session = Mock(spec=requests.Session)
        webhook_session.post.return_value = http_response(text='{"errcode":0,"errmsg":"ok"}')
        notifier = WeChatNotifier(config.wechat.webhook_url, session=webhook_session)

        monitor = StockMonitor(config, notifier, fetcher=fetcher, clock=clock)
        return monitor, clock, webhook_session

    def test_scenario_a_alert_in_window(self, config):
        """Scenario A: a 1% move at Wednesday 14:40 is delivered."""
        monitor, clock, webhook = self.build(
            config, [quote_body(3000.0), quote_body(3030.0)], WEDNESDAY_1440 - timedelta(seconds=30)
        )

        assert monitor.check_stock() == TickOutcome.INITIALIZED
        webhook.post.assert_not_called()

        clock.now = WEDNESDAY_1440
        assert monitor.check_stock() == TickOutcome.SENT

        webhook.post.assert_called_once()
        payload = webhook.post.call_args.kwargs["json"]
        assert payload["msgtype"] == "text"
        assert "上证指数" in payload["text"]["content"]
        assert "up 1.00%" in payload["text"]["content"]

        state = monitor.state
        assert state.last_alert_time == WEDNESDAY_1440
        assert state.last_alert_change == pytest.approx(1.0)
        assert state.last_snapshot.current == 3030.0

    def test_scenario_b_outside_window(self, config):
        """Scenario B: the same move at 10:00 is not sent but state advances."""
        monitor, _, webhook = self.build(
            config, [quote_body(3000.0), quote_body(3030.0)], WEDNESDAY_1000
        )

        monitor.check_stock()
        assert monitor.check_stock() == TickOutcome.OUTSIDE_WINDOW

        webhook.post.assert_not_called()
        state = monitor.state
        assert state.last_snapshot.current == 3030.0
        assert state.last_snapshot.timestamp == WEDNESDAY_1000
        assert state.last_alert_time is None

    def test_scenario_c_dedup_and_escalation(self, config):
        """Scenario C: 1.0% sent, 1.05% two minutes later suppressed, 1.3% at three minutes sent."""
        start = WEDNESDAY_1440
        monitor, clock, webhook = self.build(
            config,
            [quote_body(3000.0), quote_body(3030.0), quote_body(3031.5), quote_body(3039.0)],
            start - timedelta(seconds=30),
        )

        monitor.check_stock()

        clock.now = start
        assert monitor.check_stock() == TickOutcome.SENT

        clock.now = start + timedelta(minutes=2)
        assert monitor.check_stock() == TickOutcome.DEDUPLICATED

        clock.now = start + timedelta(minutes=3)
        assert monitor.check_stock() == TickOutcome.SENT

        assert webhook.post.call_count == 2
        state = monitor.state
        assert state.last_alert_change == pytest.approx(1.3)
        assert state.last_alert_time == start + timedelta(minutes=3)

    def test_webhook_rejection_retries_next_tick(self, config):
        """A rejected alert is retried on the next eligible tick."""
        monitor, clock, webhook = self.build(
            config,
            [quote_body(3000.0), quote_body(3030.0), quote_body(3030.0)],
            WEDNESDAY_1440,
        )
        webhook.post.side_effect = [
            http_response(text='{"errcode":45009}', payload={"errcode": 45009, "errmsg": "api freq out of limit"}),
            http_response(text='{"errcode":0}'),
        ]

        monitor.check_stock()
        assert monitor.check_stock() == TickOutcome.SEND_FAILED
        assert monitor.state.last_alert_time is None

        clock.now = WEDNESDAY_1440 + timedelta(seconds=30)
        assert monitor.check_stock() == TickOutcome.SENT
        assert webhook.post.call_count == 2

    def test_malformed_webhook_reply_still_advances_snapshot(self, config):
        """A reply with a non-numeric errcode fails the send but the tick completes."""
        monitor, _, webhook = self.build(
            config, [quote_body(3000.0), quote_body(3030.0)], WEDNESDAY_1440
        )
        webhook.post.return_value = http_response(text='{"errcode":"bad"}', payload={"errcode": "bad"})

        monitor.check_stock()
        assert monitor.check_stock() == TickOutcome.SEND_FAILED

        state = monitor.state
        assert state.last_snapshot.current == 3030.0
        assert state.last_alert_time is None

    def test_source_outage_falls_back_to_synthetic(self, config):
        """A primary source outage keeps the loop fed with synthetic data."""
        clock = Clock(WEDNESDAY_1000)
        quote_session = Mock(spec=requests.Session)
        quote_session.get.side_effect = requests.ConnectionError("unreachable")
        fetcher = QuoteFetcher(names=config.names, session=quote_session, clock=clock)
        notifier = WeChatNotifier(WEBHOOK_URL, session=Mock(spec=requests.Session))
        monitor = StockMonitor(config, notifier, fetcher=fetcher, clock=clock)

        assert monitor.check_stock() == TickOutcome.INITIALIZED
        assert monitor.state.last_snapshot == fetcher.synthesize("sh000001")

        clock.now = WEDNESDAY_1000 + timedelta(seconds=30)
        outcome = monitor.check_stock()

        assert outcome in (TickOutcome.BELOW_THRESHOLD, TickOutcome.OUTSIDE_WINDOW)
        assert monitor.state.last_snapshot.timestamp == clock.now
