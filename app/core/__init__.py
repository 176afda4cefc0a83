"""Configuration, database, errors and request context"""
