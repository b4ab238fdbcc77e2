"""Command line interface for thinkchat.

Entry point: thinkchat.cli.app:app
"""
