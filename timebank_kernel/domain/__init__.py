"""
Pure domain layer.

Value objects, records and rule tables for the time-bank engine, with NO
dependencies on the database, configuration files, or logging setup.
"""
