"""
Fuel Tracker - Financial State & Decision Engine

Tracks salary, expenses and recurring bills through a "fuel tank"
metaphor: the remaining balance is fuel, the average daily spend is the
burn rate, and the runway is measured in days remaining.
"""

__version__ = "0.1.0"
