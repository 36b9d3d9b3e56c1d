# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Session synchronization engine: normalize, merge, orchestrate, schedule."""
