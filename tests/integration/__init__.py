"""
Integration tests for the Parking Ledger

These verify that the engine, service, commands and adapters work together:
- SQL record store on an in-memory SQLite database
- Redis publisher against a mocked client
- Console sessions driven by scripted input
- Application wiring from configuration
"""
