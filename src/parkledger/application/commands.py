# File: src/parkledger/application/commands.py
"""
Command Pattern Implementation for the Parking Ledger

Each operation a front-end can trigger is wrapped as a command object that
can be validated, executed against the ParkingService, logged and (for
park) undone. The console drives everything through a CommandProcessor.

Command Types:
1. Transaction Commands - park, exit
2. Query Commands - search, availability, parked vehicles, history, statistics
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Tuple
from datetime import datetime
import logging
import uuid

from pydantic import ValidationError

from .dtos import ParkingRequestDTO, ExitRequestDTO, OperationResultDTO
from .parking_service import ParkingService


# ============================================================================
# COMMAND BASE CLASS
# ============================================================================

class Command(ABC):
    """
    Abstract base class for all commands

    A command represents an intent, named in the imperative
    (e.g. ParkVehicleCommand). execute() returns a result dictionary with
    at least "success" and "command_id".
    """

    def __init__(self, command_id: Optional[str] = None, executed_by: Optional[str] = None):
        self.command_id = command_id or str(uuid.uuid4())
        self.executed_at: Optional[datetime] = None
        self.executed_by = executed_by or "system"
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def execute(self, service: ParkingService) -> Dict[str, Any]:
        pass

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate command parameters before execution
        Returns: (is_valid, error_messages)
        """
        return True, []

    def can_undo(self) -> bool:
        return False

    def undo(self, service: ParkingService) -> Dict[str, Any]:
        return {
            "success": False,
            "command_id": self.command_id,
            "error": f"{self.__class__.__name__} does not support undo"
        }

    def get_description(self) -> str:
        return self.__class__.__name__.replace("Command", "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command_id": self.command_id,
            "command_type": self.__class__.__name__,
            "description": self.get_description(),
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "executed_by": self.executed_by
        }

    def _result(self, outcome: OperationResultDTO) -> Dict[str, Any]:
        """Translate a service outcome into the command result dictionary"""
        self.executed_at = datetime.now()
        if outcome.success:
            return {
                "success": True,
                "command_id": self.command_id,
                "data": outcome.data,
                "message": outcome.message
            }
        return {
            "success": False,
            "command_id": self.command_id,
            "error": outcome.message,
            "error_code": outcome.error_code
        }

    def _query_result(self, data: Any) -> Dict[str, Any]:
        self.executed_at = datetime.now()
        return {"success": True, "command_id": self.command_id, "data": data}


# ============================================================================
# TRANSACTION COMMANDS
# ============================================================================

class ParkVehicleCommand(Command):
    """
    Command: Park a vehicle

    Business Operation: Vehicle Entry and Slot Allocation
    Can be undone by: exiting the same vehicle
    """

    def __init__(self, request: ParkingRequestDTO, executed_by: Optional[str] = None):
        super().__init__(executed_by=executed_by)
        self.request = request
        self.ticket_id: Optional[str] = None

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        self.logger.info(f"Executing ParkVehicleCommand for {self.request.license_plate}")
        outcome = service.park_vehicle(self.request)
        if outcome.success:
            self.ticket_id = outcome.data.ticket_id
        return self._result(outcome)

    def can_undo(self) -> bool:
        return self.ticket_id is not None

    def undo(self, service: ParkingService) -> Dict[str, Any]:
        """
        Undo parking by exiting the vehicle; the visit is still billed

        Only the session this command opened is closed. If the plate has left
        since, or is parked again under another ticket, the command is spent.
        """
        if not self.can_undo():
            return super().undo(service)

        current = service.find_vehicle(self.request.license_plate)
        if not current.success or current.data.ticket_id != self.ticket_id:
            self.logger.warning(
                f"Cannot undo park of {self.request.license_plate}: "
                f"session {self.ticket_id} is no longer open"
            )
            ticket_id, self.ticket_id = self.ticket_id, None
            return {
                "success": False,
                "command_id": self.command_id,
                "error": f"Session {ticket_id} for {self.request.license_plate} is no longer open",
                "error_code": "SESSION_CLOSED"
            }

        outcome = service.exit_vehicle(ExitRequestDTO(license_plate=self.request.license_plate))
        if outcome.success:
            self.ticket_id = None
        result = self._result(outcome)
        result["undo_action"] = "vehicle_exited"
        return result

    def get_description(self) -> str:
        return f"Park {self.request.vehicle_type} {self.request.license_plate}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["request"] = self.request.to_dict()
        return data


class ExitVehicleCommand(Command):
    """
    Command: Exit a vehicle

    Business Operation: Fee Calculation and Slot Release
    """

    def __init__(self, request: ExitRequestDTO, executed_by: Optional[str] = None):
        super().__init__(executed_by=executed_by)
        self.request = request

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        self.logger.info(f"Executing ExitVehicleCommand for {self.request.license_plate}")
        return self._result(service.exit_vehicle(self.request))

    def get_description(self) -> str:
        return f"Exit {self.request.license_plate}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["request"] = self.request.to_dict()
        return data


# ============================================================================
# QUERY COMMANDS
# ============================================================================

class SearchVehicleCommand(Command):
    """Command: Look up a parked vehicle by plate"""

    def __init__(self, license_plate: str, executed_by: Optional[str] = None):
        super().__init__(executed_by=executed_by)
        self.license_plate = license_plate

    def validate(self) -> Tuple[bool, List[str]]:
        if not self.license_plate or not self.license_plate.strip():
            return False, ["License plate is required"]
        return True, []

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        is_valid, errors = self.validate()
        if not is_valid:
            return {
                "success": False,
                "command_id": self.command_id,
                "error": f"Validation failed: {errors}",
                "error_code": "VALIDATION_ERROR"
            }
        return self._result(service.find_vehicle(self.license_plate))

    def get_description(self) -> str:
        return f"Search {self.license_plate}"


class ShowAvailabilityCommand(Command):
    def execute(self, service: ParkingService) -> Dict[str, Any]:
        return self._query_result(service.get_availability())


class ShowParkedVehiclesCommand(Command):
    def execute(self, service: ParkingService) -> Dict[str, Any]:
        return self._query_result(service.get_parked_vehicles())


class ShowHistoryCommand(Command):
    def execute(self, service: ParkingService) -> Dict[str, Any]:
        return self._query_result(service.get_history())


class ShowStatisticsCommand(Command):
    def execute(self, service: ParkingService) -> Dict[str, Any]:
        return self._query_result(service.get_statistics())


# ============================================================================
# COMMAND FACTORY
# ============================================================================

class CommandFactory:
    """Creates commands from a type key and a parameter dictionary"""

    QUERY_COMMANDS = {
        "show_availability": ShowAvailabilityCommand,
        "show_parked_vehicles": ShowParkedVehiclesCommand,
        "show_history": ShowHistoryCommand,
        "show_statistics": ShowStatisticsCommand,
    }

    @staticmethod
    def create_command(command_type: str, data: Optional[Dict[str, Any]] = None) -> Optional[Command]:
        """
        Create a command instance from type and data

        Returns: Command instance, or None if the type is unknown or the
                 request data does not validate
        """
        data = data or {}
        executed_by = data.get("executed_by")

        try:
            if command_type == "park_vehicle":
                return ParkVehicleCommand(ParkingRequestDTO(**data.get("request", {})), executed_by)

            elif command_type == "exit_vehicle":
                return ExitVehicleCommand(ExitRequestDTO(**data.get("request", {})), executed_by)

            elif command_type == "search_vehicle":
                return SearchVehicleCommand(data.get("license_plate", ""), executed_by)

            elif command_type in CommandFactory.QUERY_COMMANDS:
                return CommandFactory.QUERY_COMMANDS[command_type](executed_by=executed_by)

        except ValidationError as e:
            logging.getLogger("CommandFactory").error(f"Error creating command {command_type}: {e}")
            return None

        logging.getLogger("CommandFactory").warning(f"Unknown command type: {command_type}")
        return None


# ============================================================================
# COMMAND PROCESSOR
# ============================================================================

class CommandProcessor:
    """
    Processes commands with:
    - Command logging
    - History of successful commands
    - Undo of the last undoable command
    """

    def __init__(self, service: ParkingService, max_history_size: int = 1000):
        self.service = service
        self.logger = logging.getLogger(self.__class__.__name__)
        self.command_history: List[Command] = []
        self.max_history_size = max_history_size

    def process(self, command: Command) -> Dict[str, Any]:
        self.logger.info(f"Processing command: {command.get_description()}")
        result = command.execute(self.service)

        if result.get("success", False):
            self._add_to_history(command)
        else:
            self.logger.warning(f"Command {command.get_description()} failed: {result.get('error')}")

        return result

    def process_batch(self, commands: List[Command]) -> List[Dict[str, Any]]:
        return [self.process(command) for command in commands]

    def undo_last(self) -> Dict[str, Any]:
        """
        Undo the most recent command that supports undo

        Commands whose undo can no longer apply are dropped from the history
        and the search continues with the next older one.
        """
        for index in range(len(self.command_history) - 1, -1, -1):
            command = self.command_history[index]
            if not command.can_undo():
                continue

            result = command.undo(self.service)
            if result.get("success", False):
                del self.command_history[index]
                return result
            if command.can_undo():
                return result

            self.logger.info(f"Dropping spent command: {command.get_description()}")
            del self.command_history[index]

        return {"success": False, "error": "No commands to undo"}

    def get_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        history = self.command_history[-limit:] if limit else self.command_history
        return [command.to_dict() for command in history]

    def clear_history(self) -> None:
        self.command_history.clear()

    def _add_to_history(self, command: Command) -> None:
        self.command_history.append(command)
        if len(self.command_history) > self.max_history_size:
            self.command_history = self.command_history[-self.max_history_size:]
