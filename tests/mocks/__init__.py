"""
Test doubles and network helpers for cannedns tests.

Lets server tests drive real UDP and TCP exchanges without an external
resolver.
"""
