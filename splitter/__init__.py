"""
Group Splitter - Source Package

Shared expense tracking for groups: participants log what they paid,
and the settlement engine works out who owes whom.

DESIGN PRINCIPLES:
1. Settlement computation is a pure function of the roster and expenses
2. Amounts are Decimal end to end
3. User input is validated, engine input is not
4. Every user action is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Group Splitter Team"
