"""Business logic services.

Services contain all gateway logic and are called by routes.
Services should be deterministic when possible and accept dependencies explicitly.
"""
