"""
Command-line tools for operating the charity backend.
"""
