"""
Core module - Configuration, database, security, sessions and remote services.
"""
