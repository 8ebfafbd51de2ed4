"""
Business rules shared by the API routers.

Functions here work on plain values and ORM objects and never touch the
session, so they can be unit tested without a database.
"""
