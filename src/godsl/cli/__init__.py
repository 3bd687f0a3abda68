"""
godsl Command-Line Interface
============================

Entry point: ``godsl`` (see godsl.cli.godsl).
"""
