# File: src/parkledger/domain/exceptions.py
"""
Domain exceptions for the parking engine

Every error is local and recoverable: an operation that raises one of these
leaves the engine state exactly as it was before the call.
"""


class ParkingError(Exception):
    """Base exception for parking engine errors"""
    error_code = "PARKING_ERROR"


class InvalidCategory(ParkingError, ValueError):
    """Raised when a vehicle category input is not recognised"""
    error_code = "INVALID_CATEGORY"


class InvalidVehicle(ParkingError, ValueError):
    """Raised when vehicle details are malformed (empty plate, bad capacity)"""
    error_code = "INVALID_VEHICLE"


class CapacityExhausted(ParkingError):
    """Raised when no free slot exists in the requested category"""
    error_code = "CAPACITY_EXHAUSTED"


class VehicleNotFound(ParkingError, LookupError):
    """Raised by exit/search for a plate with no open session"""
    error_code = "VEHICLE_NOT_FOUND"


class VehicleAlreadyParked(ParkingError):
    """Raised when park is called for a plate that already has an open session"""
    error_code = "VEHICLE_ALREADY_PARKED"


class InvalidSlot(ParkingError):
    """Raised when releasing a slot outside its category band or already free"""
    error_code = "INVALID_SLOT"
