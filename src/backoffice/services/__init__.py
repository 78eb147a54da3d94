"""Write-side operations.

Each operation validates its DTO, strips fields the principal may not
write, and runs the database work in a single transaction.
"""
