"""
API module - local development collector.
"""
