"""
Document numbering tests.
"""

import pytest

from boutique_pos.extensions import db
from boutique_pos.services import document_service
from boutique_pos.services.document_service import DocumentSequenceError


def test_sequences_start_where_configured(app, db_session):
    assert document_service.next_invoice_number() == "7000001"
    assert document_service.next_order_number() == "ORD-001"
    assert document_service.next_return_number() == "RET-001"
    db.session.commit()

    assert document_service.next_invoice_number() == "7000002"
    assert document_service.next_order_number() == "ORD-002"
    db.session.commit()


def test_rolled_back_number_is_reused(db_session):
    assert document_service.allocate_number("TEST") == 1
    db.session.rollback()

    assert document_service.allocate_number("TEST") == 1
    assert document_service.allocate_number("TEST") == 2
    db.session.commit()


def test_types_are_independent(db_session):
    assert document_service.allocate_number("A") == 1
    assert document_service.allocate_number("B") == 1
    assert document_service.allocate_number("A") == 2
    db.session.commit()


def test_padding_grows_past_width(db_session):
    assert document_service.format_prefixed("ORD", 7, 3) == "ORD-007"
    assert document_service.format_prefixed("ORD", 1234, 3) == "ORD-1234"


def test_custom_prefix(app, db_session):
    app.config["ORDER_NUMBER_PREFIX"] = "WEB"
    try:
        assert document_service.next_order_number() == "WEB-001"
    finally:
        app.config["ORDER_NUMBER_PREFIX"] = "ORD"
        db.session.rollback()


def test_document_type_required(db_session):
    with pytest.raises(DocumentSequenceError):
        document_service.allocate_number("")


def test_list_sequences(db_session):
    document_service.next_invoice_number()
    document_service.next_invoice_number()
    db.session.commit()

    rows = document_service.list_sequences()
    assert len(rows) == 1
    assert rows[0]["document_type"] == "INVOICE"
    assert rows[0]["next_number"] == 7000003
