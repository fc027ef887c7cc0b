"""Pydantic models for Solidtime API resources."""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class SolidtimeModel(BaseModel):
    """Base model: tolerate fields the API adds over time."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TimeEntry(SolidtimeModel):
    """One tracked interval. An entry without `end` is the running timer."""
    id: str
    description: Optional[str] = None
    start: str
    end: Optional[str] = None
    project_id: Optional[str] = None
    client_id: Optional[str] = None
    task_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    billable: bool = False
    user_id: Optional[str] = None
    member_id: str
    organization_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.end is None


class Project(SolidtimeModel):
    id: str
    name: str
    color: Optional[str] = None
    client_id: Optional[str] = None
    billable: Optional[bool] = None
    billable_rate: Optional[int] = None
    is_archived: bool = False
    is_public: bool = False
    estimated_time: Optional[int] = None
    spent_time: Optional[int] = None


class Client(SolidtimeModel):
    id: str
    name: str
    is_archived: bool = False
    archived_at: Optional[str] = None

    @property
    def archived(self) -> bool:
        return self.is_archived or self.archived_at is not None


class Task(SolidtimeModel):
    id: str
    name: str
    project_id: Optional[str] = None
    is_done: bool = False


class Member(SolidtimeModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    user_id: Optional[str] = None


class Organization(SolidtimeModel):
    id: str
    name: str
    currency: Optional[str] = None
    employees_can_see_billable_rates: Optional[bool] = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """A list response: `data` plus whatever pagination metadata the API sent."""
    data: List[T] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)
    links: Dict[str, Any] = Field(default_factory=dict)
