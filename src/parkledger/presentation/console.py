# File: src/parkledger/presentation/console.py
"""
Parking Ledger Console

A text-menu front-end for attendants. Every menu action is turned into a
command and run through the CommandProcessor, so the console holds no
parking logic of its own; it only collects input and renders results.

Menu:
1. Park a new vehicle        5. Search for a vehicle
2. Exit a vehicle            6. View parking history
3. View available slots      7. View statistics
4. View parked vehicles      8. Database records (last 20)
u. Undo last park            0. Exit application
"""

from typing import Dict, List, Optional, Any, TextIO, Callable
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from ..application.commands import CommandFactory, CommandProcessor
from ..application.dtos import (
    TicketDTO, ReceiptDTO, VehicleInfoDTO, AvailabilityDTO, VehicleCategoryDTO,
    HistoryRecordDTO, StatisticsDTO
)
from ..infrastructure.repositories import SQLAlchemyParkingRecordStore


DATE_FORMAT = "%d-%m-%Y %H:%M:%S"
WIDE_RULE = "=" * 79
NARROW_RULE = "=" * 45


def _fmt_time(value) -> str:
    return value.strftime(DATE_FORMAT) if value else "-"


class ParkingConsole:
    """
    Interactive menu bound to a CommandProcessor

    Args:
        processor: runs the commands built from menu input
        record_store: optional SQL store behind the "database records" entry
        input_stream/output_stream: default to stdin/stdout
    """

    def __init__(
        self,
        processor: CommandProcessor,
        record_store: Optional[SQLAlchemyParkingRecordStore] = None,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None
    ):
        self.processor = processor
        self.record_store = record_store
        self.input = input_stream or sys.stdin
        self.output = output_stream or sys.stdout
        self.logger = logging.getLogger(self.__class__.__name__)

        self._actions: Dict[str, Callable[[], None]] = {
            "1": self.park_vehicle,
            "2": self.exit_vehicle,
            "3": self.show_availability,
            "4": self.show_parked_vehicles,
            "5": self.search_vehicle,
            "6": self.show_history,
            "7": self.show_statistics,
            "8": self.show_database_records,
            "u": self.undo_last,
        }

    # ========================================================================
    # MAIN LOOP
    # ========================================================================

    def run(self) -> None:
        self._write(NARROW_RULE)
        self._write("   PARKING LOT MANAGEMENT SYSTEM")
        self._write(NARROW_RULE)

        while True:
            self._show_menu()
            choice = self._prompt("Enter your choice: ")
            if choice is None or choice == "0":
                self._write("\nThank you for using Parking System!")
                self._write("Drive safely!")
                break

            action = self._actions.get(choice.lower())
            if action is None:
                self._write("Invalid choice!")
                continue
            action()

        self.logger.info("Console session ended")

    def _show_menu(self) -> None:
        self._write("\n--- MAIN MENU ---")
        self._write("1. Park a new vehicle")
        self._write("2. Exit a vehicle")
        self._write("3. View available slots")
        self._write("4. View parked vehicles")
        self._write("5. Search for a vehicle")
        self._write("6. View parking history")
        self._write("7. View statistics")
        self._write("8. Database records")
        self._write("u. Undo last park")
        self._write("0. Exit application")

    # ========================================================================
    # ACTIONS
    # ========================================================================

    def park_vehicle(self) -> None:
        self._write("\n--- PARK VEHICLE ---")
        vehicle_type = (self._prompt("Enter vehicle type (car/bike/truck): ") or "").strip().lower()
        request: Dict[str, Any] = {
            "vehicle_type": vehicle_type,
            "license_plate": self._prompt("Enter vehicle number: ") or "",
            "owner_name": self._prompt("Enter owner's name: ") or "",
            "phone_number": self._prompt("Enter owner's phone number: ") or "",
        }

        if vehicle_type in ("car", "bike"):
            request["model"] = self._prompt(f"Enter {vehicle_type} model: ") or None
        elif vehicle_type == "truck":
            capacity = (self._prompt("Enter load capacity (tons): ") or "").strip()
            if not capacity.isdigit():
                self._write("Error: load capacity must be a whole number of tons")
                return
            request["load_capacity"] = int(capacity)

        command = CommandFactory.create_command("park_vehicle", {"request": request})
        if command is None:
            self._write("Error: invalid vehicle details")
            return

        result = self.processor.process(command)
        if not result["success"]:
            self._error(result)
            return

        self._write("\nVehicle parked successfully!")
        self._render_ticket(result["data"])

    def exit_vehicle(self) -> None:
        self._write("\n--- EXIT VEHICLE ---")
        plate = self._prompt("Enter vehicle number to exit: ") or ""
        command = CommandFactory.create_command("exit_vehicle", {"request": {"license_plate": plate}})
        if command is None:
            self._write("Error: vehicle number is required")
            return

        result = self.processor.process(command)
        if not result["success"]:
            self._error(result)
            return
        self._render_receipt(result["data"])

    def search_vehicle(self) -> None:
        self._write("\n--- SEARCH VEHICLE ---")
        plate = self._prompt("Enter vehicle number to search: ") or ""
        result = self.processor.process(
            CommandFactory.create_command("search_vehicle", {"license_plate": plate})
        )
        if not result["success"]:
            self._error(result)
            return
        self._render_vehicle(result["data"])

    def show_availability(self) -> None:
        result = self.processor.process(CommandFactory.create_command("show_availability"))
        availability: List[AvailabilityDTO] = result["data"]
        self._write("\n" + NARROW_RULE)
        self._write("        AVAILABLE PARKING SLOTS")
        self._write(NARROW_RULE)
        for item in availability:
            label = f"{VehicleCategoryDTO(item.category).value.title()} Slots:"
            self._write(f"{label:<13} {item.free} / {item.total}")
        self._write(NARROW_RULE)

    def show_parked_vehicles(self) -> None:
        result = self.processor.process(CommandFactory.create_command("show_parked_vehicles"))
        vehicles: List[VehicleInfoDTO] = result["data"]
        self._write("\n" + NARROW_RULE)
        self._write("        CURRENTLY PARKED VEHICLES")
        self._write(NARROW_RULE)
        if not vehicles:
            self._write("No vehicles currently parked.")
            return
        for vehicle in vehicles:
            self._render_vehicle(vehicle)

    def show_history(self) -> None:
        result = self.processor.process(CommandFactory.create_command("show_history"))
        records: List[HistoryRecordDTO] = result["data"]
        self._write("\n" + WIDE_RULE)
        self._write("                     PARKING HISTORY")
        self._write(WIDE_RULE)
        if not records:
            self._write("No parking history available.")
            return

        self._write(f"{'Record':<10} {'Vehicle':<15} {'Type':<20} {'Slot':<6} {'Minutes':<8} {'Charges':>12}")
        self._write("-" * 79)
        for record in records:
            self._write(
                f"{record.record_id:<10} {record.license_plate:<15} {record.vehicle_type:<20} "
                f"{record.slot_number:<6} {record.duration_minutes:<8} {record.charge.format():>12}"
            )

    def show_statistics(self) -> None:
        result = self.processor.process(CommandFactory.create_command("show_statistics"))
        stats: StatisticsDTO = result["data"]
        self._write("\n" + NARROW_RULE)
        self._write("          PARKING STATISTICS")
        self._write(NARROW_RULE)
        self._write(f"Currently Parked: {stats.currently_parked}")
        self._write(f"Total Processed: {stats.total_processed}")
        self._write(f"Total Revenue: {stats.total_revenue.format()}")
        self._write(f"History Records: {stats.history_count}")
        self._write(NARROW_RULE)

    def show_database_records(self) -> None:
        if self.record_store is None:
            self._write("Database not configured (use --database-url).")
            return

        try:
            records = self.record_store.recent_records(limit=20)
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to fetch database records: {e}")
            self._write(f"Error fetching records: {e}")
            return

        self._write("\n" + WIDE_RULE)
        self._write("            DATABASE RECORDS (Last 20)")
        self._write(WIDE_RULE)
        if not records:
            self._write("No records stored.")
            return
        for row in records:
            charges = f"{row['charges']:.2f}" if row["charges"] is not None else "-"
            self._write(
                f"{row['vehicle_number']:<15} {row['vehicle_type'] or '':<20} "
                f"{row['status']:<10} {_fmt_time(row['entry_time'])}  {charges}"
            )

    def undo_last(self) -> None:
        result = self.processor.undo_last()
        if not result["success"]:
            self._write(f"Error: {result.get('error')}")
            return
        self._write("Last park undone; vehicle checked out.")
        self._render_receipt(result["data"])

    # ========================================================================
    # RENDERING
    # ========================================================================

    def _render_ticket(self, ticket: TicketDTO) -> None:
        self._write(NARROW_RULE)
        self._write("              PARKING TICKET")
        self._write(NARROW_RULE)
        self._write(f"Ticket ID: {ticket.ticket_id}")
        self._write(f"Vehicle: {ticket.license_plate}")
        self._write(f"Slot: {ticket.slot_number}")
        self._write(f"Entry Time: {_fmt_time(ticket.issued_at)}")
        if ticket.hourly_rate is not None:
            self._write(f"Rate: {ticket.hourly_rate.format()} per hour")
        self._write(NARROW_RULE)
        self._write("   Please keep this ticket safe!")

    def _render_receipt(self, receipt: ReceiptDTO) -> None:
        self._write("\n" + NARROW_RULE)
        self._write("              PARKING RECEIPT")
        self._write(NARROW_RULE)
        self._write(f"Vehicle: {receipt.license_plate}")
        self._write(f"Type: {receipt.vehicle_type}")
        self._write(f"Entry: {_fmt_time(receipt.entry_time)}")
        self._write(f"Exit:  {_fmt_time(receipt.exit_time)}")
        self._write(f"Duration: {receipt.duration_minutes} minutes")
        self._write(f"CHARGES: {receipt.charge.format()}")
        self._write(NARROW_RULE)
        self._write("    Thank you for parking with us!")

    def _render_vehicle(self, vehicle: VehicleInfoDTO) -> None:
        self._write("-" * 45)
        self._write(f"Vehicle Number: {vehicle.license_plate}")
        self._write(f"Owner: {vehicle.owner_name}")
        self._write(f"Phone: {vehicle.phone_number}")
        self._write(f"Type: {vehicle.vehicle_type}")
        self._write(f"Slot: {vehicle.slot_number}")
        self._write(f"Entry Time: {_fmt_time(vehicle.entry_time)}")
        if vehicle.duration_minutes is not None:
            self._write(f"Duration: {vehicle.duration_minutes} minutes")

    # ========================================================================
    # I/O
    # ========================================================================

    def _prompt(self, text: str) -> Optional[str]:
        """Read one line; None at end of input"""
        self.output.write(text)
        self.output.flush()
        line = self.input.readline()
        if not line:
            return None
        return line.rstrip("\n").strip()

    def _write(self, text: str = "") -> None:
        print(text, file=self.output)

    def _error(self, result: Dict[str, Any]) -> None:
        self._write(f"Error: {result.get('error')}")
