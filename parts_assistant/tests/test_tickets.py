"""
Tests for tickets.py - sequential, append-only ticket store.
"""

import threading

from parts_assistant.models import Category, TicketIssueType, TicketPriority, TicketStatus
from parts_assistant.tickets import NewTicket, TicketStore


def new_ticket(**overrides) -> NewTicket:
    fields = dict(
        customer_name="Jordan Park",
        customer_email="jordan@example.com",
        issue_type=TicketIssueType.PRODUCT_ISSUE,
        issue_description="Drain pump hums but no water moves",
    )
    fields.update(overrides)
    return NewTicket(**fields)


def test_first_ticket_number_and_defaults():
    ticket = TicketStore().create(new_ticket())
    assert ticket.ticket_number == "ST-2024-10001"
    assert ticket.id == "1"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority == TicketPriority.NORMAL
    assert ticket.steps_already_tried == []
    assert ticket.created_at.tzinfo is not None


def test_numbers_increase_sequentially():
    store = TicketStore()
    numbers = [store.create(new_ticket()).ticket_number for _ in range(3)]
    assert numbers == ["ST-2024-10001", "ST-2024-10002", "ST-2024-10003"]


def test_fields_are_copied():
    ticket = TicketStore().create(new_ticket(
        appliance_type=Category.DISHWASHER,
        model_number="WDT780SAEM1",
        part_number="W10712395",
        steps_already_tried=["checked filter"],
        priority=TicketPriority.HIGH,
    ))
    assert ticket.appliance_type == Category.DISHWASHER
    assert ticket.model_number == "WDT780SAEM1"
    assert ticket.part_number == "W10712395"
    assert ticket.steps_already_tried == ["checked filter"]
    assert ticket.priority == TicketPriority.HIGH


def test_find_is_case_insensitive():
    store = TicketStore()
    created = store.create(new_ticket())
    assert store.find("st-2024-10001") == created
    assert store.find(" ST-2024-10001 ") == created
    assert store.find("ST-2024-99999") is None


def test_all_returns_snapshot():
    store = TicketStore()
    store.create(new_ticket())
    snapshot = store.all()
    store.create(new_ticket())
    assert len(snapshot) == 1
    assert [t.ticket_number for t in store.all()] == ["ST-2024-10001", "ST-2024-10002"]


def test_concurrent_creation_yields_unique_numbers():
    store = TicketStore()
    created = []
    lock = threading.Lock()

    def worker():
        for _ in range(25):
            ticket = store.create(new_ticket())
            with lock:
                created.append(ticket.ticket_number)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 200
    assert len(set(created)) == 200
    stored = [t.ticket_number for t in store.all()]
    assert stored == [f"ST-2024-{n}" for n in range(10001, 10201)]
