"""
PB Portal Scoring Engine

Committee scoring aggregation and reach-coefficient computation for the
participatory-budgeting grant portal.
"""

__version__ = "1.0.0"
