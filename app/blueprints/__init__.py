"""
App-store onboarding CRM
HTTP blueprints. Each module parses JSON, resolves the caller and hands off
to ``app.services``; errors are rendered by the handlers in ``create_app``.
"""
