"""
Controllers Package

HTTP blueprints. Each endpoint logs the user action, delegates to a service
and answers with a ``{'success': ..., ...}`` JSON envelope.
"""
