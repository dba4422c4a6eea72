"""
HTTP surface for the scheduling engine.
"""
