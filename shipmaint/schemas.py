"""
Request bodies accepted by the HTTP API.

Enum-like fields are restricted to their value sets here. The store
functions themselves accept any dict; these models only guard the HTTP
boundary.
"""

from typing import Optional, Literal
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str
    password: str


class ShipIn(BaseModel):
    name: str = Field(..., description="Ship name")
    imo: str = Field(..., description="IMO number")
    flag: str = Field(..., description="Flag state")
    status: Literal["Active", "Under Maintenance", "Out of Service"] = "Active"


class ComponentIn(BaseModel):
    shipId: str = Field(..., description="Owning ship id")
    name: str
    serialNumber: str
    installDate: str = Field(..., description="YYYY-MM-DD")
    lastMaintenanceDate: str = Field(..., description="YYYY-MM-DD")


class JobIn(BaseModel):
    componentId: str
    shipId: str = Field(..., description="Must match the component's shipId")
    type: Literal["Inspection", "Repair", "Replacement", "Overhaul"]
    priority: Literal["Low", "Medium", "High", "Critical"]
    status: Literal["Open", "In Progress", "Completed", "Cancelled"] = "Open"
    assignedEngineerId: str
    scheduledDate: str = Field(..., description="YYYY-MM-DD")
    completedDate: Optional[str] = None
    notes: Optional[str] = None
