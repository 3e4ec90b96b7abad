"""Domain layer: vehicles, slots, sessions, pricing and the engine's state holders"""
