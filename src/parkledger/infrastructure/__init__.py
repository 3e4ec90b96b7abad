"""Infrastructure layer: event sinks for SQL persistence and Redis publishing"""
