"""
venue/legacy
────────────
One-shot tools for data exported from the old spreadsheet / document-store
system. Not used by the request path.
"""
