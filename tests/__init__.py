"""
Test package for the Parking Ledger

unit/        - domain objects, pricing, engine, config, service, commands
integration/ - SQL record store, Redis publisher, console, application wiring
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add the src directory to Python path for imports
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))


class ManualClock:
    """Engine clock that only moves when a test advances it"""

    def __init__(self, start: datetime = datetime(2024, 1, 15, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, minutes: int = 0, seconds: int = 0) -> None:
        self.current += timedelta(minutes=minutes, seconds=seconds)
