"""Application layer: the parking engine, use-case service, DTOs and commands"""
