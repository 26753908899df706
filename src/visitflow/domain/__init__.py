"""
Domain layer: entities, value objects, enums and pure services.
"""
