"""
Services module - offline queue, delivery client, and sync coordination.
"""
