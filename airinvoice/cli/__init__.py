"""Unified command-line interface for airinvoice.

Usage:
    airinvoice list
    airinvoice show <id>
    airinvoice download <id>
    airinvoice parse <id>
    airinvoice process [id ...]
    airinvoice summary [--threshold N]
    airinvoice high-value [--threshold N]
    airinvoice serve [--host] [--port]
"""
