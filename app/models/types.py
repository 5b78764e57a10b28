"""
Standard type definitions for database models.

Provides consistent types for monetary, rate and percentage fields across all models.
"""

from sqlalchemy import DECIMAL, JSON
from sqlalchemy.dialects.postgresql import JSONB

# Standard money type for amounts, balances, shares
# Precision: 18 digits total, 2 after decimal point
# Every stored amount is truncated to cents before it is written
# Range: up to 9,999,999,999,999,999.99
MoneyType = DECIMAL(18, 2)

# Daily rate type for growth and decay fractions
# Precision: 12 digits total, 6 after decimal point
# Suitable for: fractions such as 0.005 (0.5%) or 0.10 (10%)
RateType = DECIMAL(12, 6)

# Percentage type for level shares
# Precision: 7 digits total, 4 after decimal point
# Suitable for: per-cent values such as 4.0000 or 0.3000
PercentType = DECIMAL(7, 4)

# JSON column stored as JSONB on PostgreSQL and as JSON text elsewhere
JsonType = JSON().with_variant(JSONB(), "postgresql")
