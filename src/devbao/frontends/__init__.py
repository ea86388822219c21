"""Frontends - user interfaces for devbao.

Submodules:
    cli/    Command-line interface
"""
