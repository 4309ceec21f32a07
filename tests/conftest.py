"""Shared fixtures: a small field-audit dataset in backend (camelCase) shape."""

import pytest

from src.core.store import Task


@pytest.fixture
def raw_tasks():
    """
    Six audit records covering the shapes seen in production.

    Mixes bare strings and lists for multi-valued fields, a record without
    priority, one without a score and one with a malformed interview date.
    """
    return [
        {
            "_id": "t1",
            "slid": "SL-1001",
            "priority": "High",
            "status": "Todo",
            "governorate": "Cairo",
            "district": "Nasr City",
            "teamName": "Alpha",
            "teamCompany": "FiberCo",
            "validationStatus": "Validated",
            "reason": ["Installation", "Speed"],
            "subReason": ["Late visit", "Low speed"],
            "rootCause": ["Scheduling", "Line quality"],
            "responsible": ["Field Team", "NOC"],
            "evaluationScore": 4,
            "interviewDate": "2025-03-04T10:00:00Z",
            "customerName": "Mona Adel",
            "contactNumber": "0100000001",
            "customerFeedback": "Technician arrived two days late",
            "tickets": [
                {
                    "mainCategory": "Complaint",
                    "status": "Closed",
                    "eventDate": "2025-03-06T08:00:00Z",
                    "rootCause": "Scheduling",
                    "subReason": "Late visit",
                    "actionTaken": "Called customer",
                    "note": "Apologized",
                }
            ],
        },
        {
            "_id": "t2",
            "slid": "SL-1002",
            "priority": "Low",
            "status": "Closed",
            "governorate": "Giza",
            "district": "Dokki",
            "teamName": "Beta",
            "teamCompany": "NetWorks",
            "validationStatus": "Pending",
            "reason": "Installation",
            "rootCause": "Scheduling",
            "responsible": "Field Team",
            "evaluationScore": 8,
            "interviewDate": "2025-03-05T10:00:00Z",
            "customerName": "Omar Khaled",
            "contactNumber": "0100000002",
        },
        {
            "_id": "t3",
            "slid": "SL-1003",
            "status": "Todo",
            "governorate": "Cairo",
            "district": "Maadi",
            "teamName": "Alpha",
            "teamCompany": "FiberCo",
            "validationStatus": "Validated",
            "reason": ["Speed"],
            "rootCause": ["Line quality"],
            "responsible": ["NOC"],
            "evaluationScore": 10,
            "interviewDate": "2025-03-11T10:00:00Z",
            "customerName": "Sara Nabil",
        },
        {
            "_id": "t4",
            "slid": "SL-1004",
            "priority": "High",
            "status": "In Progress",
            "governorate": "Alexandria",
            "teamName": "Gamma",
            "teamCompany": "FiberCo",
            "validationStatus": "Validated",
            "reason": "Billing",
            "responsible": "Sales",
            "evaluationScore": 9,
            "interviewDate": "2025-03-12T10:00:00Z",
        },
        {
            "_id": "t5",
            "slid": "SL-1005",
            "priority": "Normal",
            "status": "Todo",
            "governorate": "Giza",
            "teamName": "Beta",
            "teamCompany": "NetWorks",
            "reason": ["Speed"],
            "responsible": ["NOC"],
            "interviewDate": "not-a-date",
        },
        {
            "_id": "t6",
            "slid": "SL-1006",
            "priority": "Low",
            "status": "Closed",
            "governorate": "Cairo",
            "teamName": "Alpha",
            "teamCompany": "FiberCo",
            "validationStatus": "Validated",
            "reason": ["Installation"],
            "responsible": ["Field Team"],
            "evaluationScore": 6,
            "interviewDate": "2025-02-25T10:00:00Z",
            "customerFeedback": "Router still not configured",
        },
    ]


@pytest.fixture
def tasks(raw_tasks):
    """The dataset normalized into Task records."""
    return [Task.from_dict(record, index) for index, record in enumerate(raw_tasks)]
