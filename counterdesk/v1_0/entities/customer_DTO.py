from dataclasses import dataclass
from typing import Optional

@dataclass(slots=True)
class CustomerSummaryDTO:
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
