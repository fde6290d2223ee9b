# Overview: Service-layer operations for schools, booklists and option items.

"""
Catalogue Service

Reference data the redemption form is built from: schools, graded
booklists (with their stationery items) and the optional checkboxes.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Booklist, BooklistItem, OptionItem, School
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    enforce_rules_money,
    require_non_negative,
    require_text,
)

BOOKLIST_MUTABLE_FIELDS = {"code", "name", "grade", "total_amount_cents"}
OPTION_ITEM_MUTABLE_FIELDS = {"name", "key", "enabled", "default_checked"}


# =============================================================================
# Schools
# =============================================================================

def list_schools() -> list[School]:
    return db.session.query(School).order_by(School.name.asc()).all()


def create_school(name) -> School:
    name = require_text("name", name)
    if db.session.query(School).filter_by(name=name).first():
        raise ConflictError(f"School already exists: {name}")
    school = School(name=name)
    db.session.add(school)
    db.session.flush()
    return school


# =============================================================================
# Booklists
# =============================================================================

def list_booklists() -> list[Booklist]:
    return db.session.query(Booklist).order_by(Booklist.grade.asc(), Booklist.id.asc()).all()


def get_booklist(booklist_id: int) -> Booklist:
    booklist = db.session.get(Booklist, booklist_id)
    if booklist is None:
        raise NotFoundError(f"Booklist {booklist_id} not found")
    return booklist


def _build_items(items) -> list[BooklistItem]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    built = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        quantity = require_non_negative(f"items[{index}].quantity", raw.get("quantity"))
        rate_cents = require_non_negative(f"items[{index}].rate_cents", raw.get("rate_cents"))
        built.append(BooklistItem(
            name=require_text(f"items[{index}].name", raw.get("name")),
            quantity=quantity,
            rate_cents=rate_cents,
            amount_cents=quantity * rate_cents,
        ))
    return built


def create_booklist(*, patch: dict, items=None) -> Booklist:
    """
    Create a booklist and its items.

    Item amounts are always quantity * rate. The bundle total is taken
    from the patch when given, else the sum of item amounts.
    """
    built = _build_items(items)
    enforce_rules_money(patch, "total_amount_cents")

    booklist = Booklist(**patch)
    booklist.items.extend(built)
    if patch.get("total_amount_cents") is None:
        booklist.total_amount_cents = sum(item.amount_cents for item in built)

    db.session.add(booklist)
    db.session.flush()
    return booklist


def update_booklist(booklist_id: int, *, patch: dict, items=None) -> Booklist:
    """Update header fields; a provided ``items`` list replaces all items."""
    booklist = get_booklist(booklist_id)
    enforce_rules_money(patch, "total_amount_cents")

    for k, v in patch.items():
        if k in BOOKLIST_MUTABLE_FIELDS:
            setattr(booklist, k, v)

    if items is not None:
        built = _build_items(items)
        booklist.items.clear()
        booklist.items.extend(built)
        if "total_amount_cents" not in patch:
            booklist.total_amount_cents = sum(item.amount_cents for item in built)

    db.session.flush()
    return booklist


def delete_booklist(booklist_id: int) -> None:
    booklist = get_booklist(booklist_id)
    db.session.delete(booklist)
    db.session.flush()


# =============================================================================
# Option items
# =============================================================================

def list_option_items() -> list[OptionItem]:
    return db.session.query(OptionItem).order_by(OptionItem.name.asc()).all()


def get_option_item(item_id: int) -> OptionItem:
    item = db.session.get(OptionItem, item_id)
    if item is None:
        raise NotFoundError(f"Option item {item_id} not found")
    return item


def create_option_item(*, patch: dict) -> OptionItem:
    if db.session.query(OptionItem).filter_by(key=patch["key"]).first():
        raise ConflictError(f"Option item key already exists: {patch['key']}")
    item = OptionItem(**patch)
    db.session.add(item)
    db.session.flush()
    return item


def update_option_item(item_id: int, *, patch: dict) -> OptionItem:
    item = get_option_item(item_id)
    key = patch.get("key")
    if key and key != item.key:
        if db.session.query(OptionItem).filter(OptionItem.key == key, OptionItem.id != item.id).first():
            raise ConflictError(f"Option item key already exists: {key}")
    for k, v in patch.items():
        if k in OPTION_ITEM_MUTABLE_FIELDS:
            setattr(item, k, v)
    db.session.flush()
    return item


def toggle_option_item(item_id: int) -> OptionItem:
    item = get_option_item(item_id)
    item.enabled = not item.enabled
    db.session.flush()
    return item


def delete_option_item(item_id: int) -> None:
    item = get_option_item(item_id)
    db.session.delete(item)
    db.session.flush()
