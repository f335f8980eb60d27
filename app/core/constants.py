"""
Application constants
"""

SERVICE_NAME = "attendance-policy-engine"
