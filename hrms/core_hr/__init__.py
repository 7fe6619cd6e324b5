"""Core HR module — Employee, Department, Position models, schemas and services."""

from hrms.core_hr.models import Department, Employee, Position

__all__ = ["Employee", "Department", "Position"]
