"""
Core module - configuration, domain models, and exceptions.
"""
