"""
Car Wash Management System API.
"""
__version__ = "1.0.0"
