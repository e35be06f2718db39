# ============================================================================
# tests/unit/test_selection.py
# ============================================================================
"""
Tests for medication selection commands
"""

import pytest

from rxplain.processors.medication import MedicationSelection
from rxplain.utils.exceptions import UnknownMedicationError


@pytest.fixture
def selection(aggregated_view):
    return MedicationSelection(aggregated_view)


def test_select_returns_canonical_name(selection):
    assert selection.select("  METFORMIN") == "Metformin"


def test_select_unknown_raises(selection):
    with pytest.raises(UnknownMedicationError):
        selection.select("Ibuprofen")


def test_thresholds(selection):
    assert not selection.can_request_schedule
    assert not selection.can_check_interactions

    selection.select("Lipitor")
    assert selection.can_request_schedule
    assert not selection.can_check_interactions

    selection.select("Lisinopril")
    assert selection.can_check_interactions


def test_selecting_twice_counts_once(selection):
    selection.select("Lipitor")
    selection.select("lipitor")
    assert selection.count == 1


def test_toggle(selection):
    assert selection.toggle("Metformin") is True
    assert selection.is_selected("Metformin")
    assert selection.toggle("metformin") is False
    assert not selection.is_selected("Metformin")


def test_deselect_and_clear(selection):
    selection.select("Metformin")
    selection.select("Lipitor")

    selection.deselect("Metformin")
    assert selection.selected_names() == ["Lipitor"]

    selection.clear()
    assert selection.count == 0


def test_selected_names_follow_view_order(selection):
    selection.select("Lipitor")
    selection.select("Medication Entry #3")
    selection.select("Metformin")

    assert selection.selected_names() == ["Metformin", "Medication Entry #3", "Lipitor"]


def test_selected_records(selection):
    selection.select("Lipitor")
    selection.select("Metformin")

    view = selection.selected_records()
    assert view.display_names() == ["Metformin", "Lipitor"]
    assert view.get("Lipitor").dosage == "20 mg"
