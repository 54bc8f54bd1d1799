"""
Core application infrastructure: settings, database, logging, auth and errors
"""
