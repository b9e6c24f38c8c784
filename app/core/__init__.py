"""
Core infrastructure for the phrase localization backend: database access,
hashing, validation, exceptions, error handlers and logging.
"""
