"""
Read-only reports for the dashboard
"""
