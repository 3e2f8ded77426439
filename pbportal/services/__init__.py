"""
Services Package - PB Portal Scoring Engine

Scoring records, reach declarations, the scoring monitor and the storage /
configuration clients they depend on.
"""
