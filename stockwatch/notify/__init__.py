# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Real-time notification of watch-list changes."""

from stockwatch.notify.broadcaster import BroadcastHub, FanoutNotifier, Notifier, WebhookNotifier

__all__ = ["BroadcastHub", "FanoutNotifier", "Notifier", "WebhookNotifier"]
