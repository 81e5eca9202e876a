"""
Crumb Coach Timeline - API Routers
Version: 1.0.0
"""
