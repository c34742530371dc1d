"""Submission folder naming convention.

A submission folder is named
``<customer>_<vehicle>_<YYYYMMDD>_<SUBMISSIONID>``. The trailing segment is
the only index of a submission, so listing recovers ids from names alone.
"""
import re
import uuid
from datetime import datetime
from typing import Optional

CUSTOMER_NAME_MAX_LENGTH = 50
FALLBACK_CUSTOMER_NAME = "Customer"


def generate_submission_id() -> str:
    return uuid.uuid4().hex[:8].upper()


def sanitize_customer_name(name: str) -> str:
    """Keep ``[A-Za-z0-9 -]``, join words with single underscores, cap at 50.

    Underscores in the input are treated like whitespace so the result is a
    fixed point: sanitizing an already-sanitized name returns it unchanged.
    """
    cleaned = re.sub(r"[^a-zA-Z0-9\s_-]", "", name)
    cleaned = re.sub(r"[\s_]+", "_", cleaned).strip("_")
    return cleaned[:CUSTOMER_NAME_MAX_LENGTH].rstrip("_")


def sanitize_vehicle_number(vehicle_number: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "", vehicle_number)


def format_folder_date(timestamp: datetime) -> str:
    return timestamp.strftime("%Y%m%d")


def build_folder_name(customer_name: str, vehicle_number: str, timestamp: datetime, submission_id: str) -> str:
    customer = sanitize_customer_name(customer_name) or FALLBACK_CUSTOMER_NAME
    vehicle = sanitize_vehicle_number(vehicle_number)
    return f"{customer}_{vehicle}_{format_folder_date(timestamp)}_{submission_id}"


# Recovers the submission id from a folder name, using the provider id for renamed folders
def extract_submission_id(folder_name: Optional[str], folder_id: str) -> str:
    if not folder_name or "_" not in folder_name:
        return folder_id
    return folder_name.rsplit("_", 1)[1] or folder_id
