"""
Domain layer - Core task entity and domain errors.

This layer contains the fundamental business objects and rules,
independent of any storage or framework concerns.
"""
