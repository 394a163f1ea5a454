"""
Payday Planner - Source Package

A bill prioritization and payday scheduling engine: ranks pending bills
by urgency and routes each one to the payday it should be paid from.

DESIGN PRINCIPLES:
1. The engine is a pure function of its inputs
2. Time is always passed in, never read from the clock
3. No bill is silently dropped
4. Unanswerable situations are data, not exceptions
5. Sources are swappable
"""

__version__ = "1.0.0"
__author__ = "Payday Planner Team"
