"""
Video info aggregation service.
"""
