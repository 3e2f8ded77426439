"""
Models Package - PB Portal Scoring Engine
pbportal/models/__init__.py

Pydantic models for scoring records, the master tracker and reach declarations.
"""
