"""
Domain layer for Tresorier.
"""
