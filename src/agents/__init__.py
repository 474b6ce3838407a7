"""External service integrations.

Modules:
    sheets_client      — Google Sheets CSV credential directory (+ static fallback)
"""
