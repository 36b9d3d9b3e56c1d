# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""HTTP surface."""
