"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Unit tests for the ALM entity models and their field-list encoding.
"""

import pytest

from almrest.alm_models import (
    Attachment,
    Run,
    RunStep,
    RunSteps,
    Test,
    TestInstances,
)


def field(name, value):
    return {"Name": name, "values": [{"value": value}]}


@pytest.mark.unit
class TestEntityPayloads:
    """Tests for decoding and encoding single entities."""

    def test_decode_run(self):
        payload = {
            "Type": "run",
            "Fields": [
                field("id", "17"),
                field("name", "Run_10-16_12-00"),
                field("test-id", "5"),
                field("testcycl-id", "8"),
                field("status", "Passed"),
                field("ver-stamp", "3"),
                field("user-01", "custom"),
            ],
        }

        run = Run.from_payload(payload)

        assert run.id == "17"
        assert run.name == "Run_10-16_12-00"
        assert run.test_id == "5"
        assert run.testcycl_id == "8"
        assert run.status == "Passed"
        assert run.ver_stamp == "3"
        assert run.get_field("user-01") == "custom"
        assert run.get_field("test-id") == "5"

    def test_decode_empty_and_multi_values(self):
        payload = {
            "Type": "test",
            "Fields": [
                {"Name": "owner", "values": []},
                {"Name": "status", "values": [{"value": "Ready"}, {"value": "Design"}]},
            ],
        }

        test = Test.from_payload(payload)

        assert test.owner is None
        assert test.status == "Ready"

    def test_decode_numbers_as_strings(self):
        run = Run.from_payload({"Type": "run", "Fields": [field("id", 17), field("duration", 42)]})

        assert run.id == "17"
        assert run.duration == "42"

    def test_decode_wrong_type(self):
        with pytest.raises(ValueError, match="Expected a 'run' entity"):
            Run.from_payload({"Type": "test", "Fields": []})

    def test_encode_skips_unset_fields(self):
        run = Run(**{"name": "Nightly", "test-id": "5", "status": "Failed"})

        payload = run.to_payload()

        assert payload["Type"] == "run"
        assert sorted(payload["Fields"], key=lambda f: f["Name"]) == [
            field("name", "Nightly"),
            field("status", "Failed"),
            field("test-id", "5"),
        ]

    def test_encode_keeps_extra_fields(self):
        step = RunStep(**{"parent-id": "17", "status": "Passed", "user-02": "x"})

        names = {f["Name"] for f in step.to_payload()["Fields"]}

        assert names == {"parent-id", "status", "user-02"}


@pytest.mark.unit
class TestClearBeforeUpdate:
    """Tests for dropping server-managed fields."""

    def test_run_clears_version_fields(self):
        run = Run(**{"id": "17", "status": "Passed", "ver-stamp": "3", "last-modified": "2025-01-01"})

        run.clear_before_update()

        assert run.ver_stamp is None
        assert run.last_modified is None
        assert run.id == "17"
        assert run.status == "Passed"
        names = {f["Name"] for f in run.to_payload()["Fields"]}
        assert names == {"id", "status"}

    def test_run_step_clears_parent_and_design_links(self):
        step = RunStep(
            **{
                "id": "101",
                "parent-id": "17",
                "test-id": "5",
                "desstep-id": "44",
                "ver-stamp": "2",
                "actual": "As expected",
            }
        )
        assert step.run_id == "17"

        step.clear_before_update()

        assert step.parent_id is None
        assert step.test_id is None
        assert step.desstep_id is None
        assert step.ver_stamp is None
        assert step.actual == "As expected"
        assert step.run_id is None

    def test_entities_without_read_only_fields_are_untouched(self):
        attachment = Attachment(**{"id": "3", "name": "log.txt", "ver-stamp": "1"})

        attachment.clear_before_update()

        assert attachment.ver_stamp == "1"


@pytest.mark.unit
class TestCollections:
    """Tests for collection payloads."""

    def test_decode_test_instances(self):
        payload = {
            "entities": [
                {"Type": "test-instance", "Fields": [field("id", "1"), field("cycle-id", "42")]},
                {"Type": "test-instance", "Fields": [field("id", "2"), field("cycle-id", "42")]},
            ],
            "TotalResults": 2,
        }

        instances = TestInstances.from_payload(payload)

        assert len(instances) == 2
        assert instances.total_results == 2
        assert [i.id for i in instances.entities] == ["1", "2"]
        assert all(i.cycle_id == "42" for i in instances.entities)

    def test_decode_empty_collection(self):
        steps = RunSteps.from_payload({"entities": []})

        assert len(steps) == 0
        assert steps.total_results == 0

    def test_collection_rejects_foreign_entities(self):
        with pytest.raises(ValueError):
            RunSteps.from_payload({"entities": [{"Type": "run", "Fields": []}]})
