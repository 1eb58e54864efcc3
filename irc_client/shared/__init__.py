"""
Shared Module

Provides models, configuration, logging, exceptions and line framing
used by the client core.
"""
