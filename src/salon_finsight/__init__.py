# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Salon FinSight
--------------

A Python-based financial analytics engine for appointment-driven service
businesses (salons, barbershops, clinics). It turns raw operational
records into the figures an owner or accountant reviews every day.

Main capabilities:
- normalization of appointments, payments, expenses, commissions and
  payment-gateway reconciliation rows from camelCase or snake_case exports,
- revenue reconciliation between completed appointments and payments,
- headline KPIs, margins, occupancy, break-even and linear projections,
- rule-based alerts (cancellations, revenue drop, low margin, gateway
  differences),
- gateway reconciliation difference detection,
- breakdowns per category, payment method, employee, location and day,
- a SQLite store with a TTL query cache in front of it,
- a command-line interface rendering tables and CSV exports.

Salon FinSight separates computation (engine), configuration (TOML) and
presentation (CLI), making it suitable for scripting, automation and
financial diagnostics.


Version: 0.1.0

Usage:
    python -m salon_finsight.cli --help
"""

__all__ = ["engine", "dashboard", "views", "io"]

__version__ = "0.1.0"
