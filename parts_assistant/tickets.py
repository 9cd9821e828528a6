"""
Support ticket store.

Append-only, process-lifetime ticket list with a sequential counter. Ticket numbers
look like ST-2024-10001, ST-2024-10002, ... and are unique and strictly increasing
even when tickets are created from several threads at once: the counter read, the
ticket construction and the append all happen under one lock.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from .models import Category, SupportTicket, TicketIssueType, TicketPriority

logger = logging.getLogger(__name__)

TICKET_PREFIX = "ST-2024-"
FIRST_TICKET_NUMBER = 10001


class NewTicket(BaseModel):
    """Fields supplied by the caller when creating a ticket."""
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    issue_type: TicketIssueType
    appliance_type: Optional[Category] = None
    model_number: Optional[str] = None
    part_number: Optional[str] = None
    issue_description: str
    conversation_summary: str = ""
    steps_already_tried: list[str] = Field(default_factory=list)
    priority: TicketPriority = TicketPriority.NORMAL


class TicketStore:
    def __init__(self, start_at: int = FIRST_TICKET_NUMBER) -> None:
        self._lock = threading.Lock()
        self._tickets: list[SupportTicket] = []
        self._next_number = start_at

    def create(self, new_ticket: NewTicket) -> SupportTicket:
        with self._lock:
            ticket = SupportTicket(
                id=str(len(self._tickets) + 1),
                ticket_number=f"{TICKET_PREFIX}{self._next_number}",
                priority=new_ticket.priority,
                customer_name=new_ticket.customer_name,
                customer_email=new_ticket.customer_email,
                customer_phone=new_ticket.customer_phone,
                issue_type=new_ticket.issue_type,
                appliance_type=new_ticket.appliance_type,
                model_number=new_ticket.model_number,
                part_number=new_ticket.part_number,
                issue_description=new_ticket.issue_description,
                conversation_summary=new_ticket.conversation_summary,
                steps_already_tried=list(new_ticket.steps_already_tried),
                created_at=datetime.now(timezone.utc),
            )
            self._tickets.append(ticket)
            self._next_number += 1

        logger.info("created support ticket %s (priority=%s)", ticket.ticket_number, ticket.priority.value)
        return ticket

    def find(self, ticket_number: str) -> Optional[SupportTicket]:
        wanted = ticket_number.strip().lower()
        with self._lock:
            for ticket in self._tickets:
                if ticket.ticket_number.lower() == wanted:
                    return ticket
        return None

    def all(self) -> list[SupportTicket]:
        """Snapshot copy of every ticket, oldest first."""
        with self._lock:
            return list(self._tickets)
