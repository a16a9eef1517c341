from __future__ import annotations

from enum import Enum
from typing import List, Literal
from pydantic import BaseModel


class UserRole(str, Enum):
    ADMIN = "Admin"
    USER = "User"
    VIEWER = "Viewer"


class User(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    status: Literal["Active", "Inactive"]


class Document(BaseModel):
    id: str
    name: str
    type: str
    uploaded_by: str
    date: str
    size: str
    status: Literal["Processed", "Pending", "Error"]


class StatCard(BaseModel):
    stat_id: str
    title: str
    value: str
    sub: str | None = None


class DashboardOptions(BaseModel):
    doc_types: List[str]
    companies: List[str]
    subjects: List[str]
