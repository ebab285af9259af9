"""Unit tests for the in-memory mock store."""

from database import InMemoryStore, format_display_id, parse_display_id


class TestDisplayIds:
    def test_format_pads_to_three_digits(self):
        assert format_display_id("R", 2) == "R002"
        assert format_display_id("PR", 1234) == "PR1234"

    def test_parse_ignores_foreign_ids(self):
        assert parse_display_id("R", "R017") == 17
        assert parse_display_id("PR", "R017") == 0
        assert parse_display_id("R", "Rabc") == 0


class TestInMemoryStore:
    """Lookups, appends and id counters."""

    def test_patient_lookup_by_id_or_username(self, store):
        assert store.get_patient("ABHA1234")["name"] == "Saurabh Vishwakarma"
        assert store.get_patient("vishwakarma_4294@sbx")["id"] == "ABHA1234"
        assert store.get_patient("unknown-id") is None

    def test_staff_are_not_patients(self, store):
        """Doctor and pharmacist accounts are users, not patients."""
        assert store.get_user_by_username("drmehta")["role"] == "doctor"
        assert store.get_patient("D001") is None

    def test_counters_continue_from_seed_data(self, store):
        assert store.next_record_id() == "R002"
        assert store.next_record_id() == "R003"
        assert store.next_prescription_id() == "PR002"

    def test_counters_are_global_across_patients(self):
        """Ids are drawn from the highest id held by any patient."""
        store = InMemoryStore([
            {"id": "P1", "username": "a", "role": "patient", "records": [{"id": "R004"}]},
            {"id": "P2", "username": "b", "role": "patient", "records": [{"id": "R009"}]},
        ])
        assert store.next_record_id() == "R010"
        assert store.next_prescription_id() == "PR001"

    def test_returned_patients_are_copies(self, store):
        """Mutating a returned patient does not touch the store."""
        patient = store.get_patient("ABHA1234")
        patient["records"].append({"id": "R999"})

        assert len(store.get_patient("ABHA1234")["records"]) == 1

    def test_append_keeps_order(self, store):
        store.append_record("ABHA1234", {"id": "R002", "note": "follow-up"})
        store.append_prescription("ABHA1234", {"id": "PR002"})

        patient = store.get_patient("ABHA1234")
        assert [r["id"] for r in patient["records"]] == ["R001", "R002"]
        assert [p["id"] for p in patient["prescriptions"]] == ["PR001", "PR002"]

    def test_direct_appends_move_counters_forward(self, store):
        """An id appended directly is never handed out again."""
        store.append_record("ABHA1234", {"id": "R050"})
        store.append_prescription("ABHA1234", {"id": "PR007"})
        store.append_record("ABHA1234", {"id": "R010"})

        assert store.next_record_id() == "R051"
        assert store.next_prescription_id() == "PR008"
