"""
Configuration, logging, errors and storage.
"""
