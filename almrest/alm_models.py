"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
ALM Models module.

This module provides Pydantic models for the ALM test-management entities:
tests, test sets, test instances, runs, run steps and attachments.

ALM exchanges entities as a list of named fields rather than as plain JSON
objects::

    {"Type": "run", "Fields": [{"Name": "status", "values": [{"value": "Passed"}]}]}

Every model maps its ALM field names (``test-id``, ``ver-stamp``...) onto
Python attributes through aliases, and keeps any field it does not declare as
an extra so that it is written back untouched.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, Field


class ALMEntity(BaseModel):
    """
    Base class for a single ALM entity.

    Subclasses set ``ENTITY_TYPE`` to the ALM entity kind and list the fields
    the server manages itself in ``READ_ONLY_FIELDS``.
    """

    # Keeps pytest from collecting Test, TestSet... as test classes.
    __test__: ClassVar[bool] = False

    ENTITY_TYPE: ClassVar[str] = ""
    READ_ONLY_FIELDS: ClassVar[tuple[str, ...]] = ()

    id: str | None = Field(None, description="Entity ID assigned by the server")
    name: str | None = Field(None, description="Display name")
    ver_stamp: str | None = Field(None, alias="ver-stamp", description="Optimistic-lock version stamp")
    last_modified: str | None = Field(None, alias="last-modified", description="Last modification timestamp")

    model_config = {"populate_by_name": True, "extra": "allow", "coerce_numbers_to_str": True}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]):
        """Build an entity from ALM's ``{"Type": ..., "Fields": [...]}`` representation.

        Only the first value of a multi-value field is kept; a field with no
        values decodes to None.

        Raises:
            ValueError: If the payload declares a different entity type
        """
        entity_type = payload.get("Type")
        if cls.ENTITY_TYPE and entity_type and entity_type != cls.ENTITY_TYPE:
            raise ValueError(f"Expected a '{cls.ENTITY_TYPE}' entity, got '{entity_type}'")

        fields: dict[str, Any] = {}
        for field in payload.get("Fields", []):
            values = field.get("values") or []
            fields[field["Name"]] = values[0].get("value") if values else None

        return cls.model_validate(fields)

    def to_payload(self) -> dict[str, Any]:
        """Encode the entity into ALM's field-list representation, skipping unset values."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        return {
            "Type": self.ENTITY_TYPE,
            "Fields": [
                {"Name": name, "values": [{"value": str(value)}]} for name, value in data.items()
            ],
        }

    def get_field(self, name: str) -> Any:
        """Return a field by its ALM name, whether declared or carried as an extra."""
        attribute = self._attribute_for(name)
        if attribute is not None:
            return getattr(self, attribute)
        return (self.model_extra or {}).get(name)

    def clear_before_update(self) -> None:
        """Drop the server-managed fields so they are not resubmitted on update."""
        for name in self.READ_ONLY_FIELDS:
            attribute = self._attribute_for(name)
            if attribute is not None:
                setattr(self, attribute, None)
            elif self.model_extra:
                self.model_extra.pop(name, None)

    @classmethod
    def _attribute_for(cls, name: str) -> str | None:
        for attribute, info in cls.model_fields.items():
            if name in (attribute, info.alias):
                return attribute
        return None


class Test(ALMEntity):
    """A test in the ALM test plan."""

    ENTITY_TYPE: ClassVar[str] = "test"

    status: str | None = None
    owner: str | None = None
    description: str | None = None
    subtype_id: str | None = Field(None, alias="subtype-id", description="Test type, e.g. MANUAL")
    parent_id: str | None = Field(None, alias="parent-id", description="ID of the test folder")
    creation_time: str | None = Field(None, alias="creation-time")
    exec_status: str | None = Field(None, alias="exec-status")


class TestSet(ALMEntity):
    """A test set (called a cycle in ALM's data model)."""

    ENTITY_TYPE: ClassVar[str] = "test-set"

    status: str | None = None
    description: str | None = None
    subtype_id: str | None = Field(None, alias="subtype-id")
    parent_id: str | None = Field(None, alias="parent-id", description="ID of the test set folder")
    open_date: str | None = Field(None, alias="open-date")
    close_date: str | None = Field(None, alias="close-date")


class TestInstance(ALMEntity):
    """A test placed in a test set."""

    ENTITY_TYPE: ClassVar[str] = "test-instance"

    test_id: str | None = Field(None, alias="test-id")
    cycle_id: str | None = Field(None, alias="cycle-id", description="ID of the owning test set")
    test_order: str | None = Field(None, alias="test-order")
    status: str | None = None
    owner: str | None = None
    actual_tester: str | None = Field(None, alias="actual-tester")
    subtype_id: str | None = Field(None, alias="subtype-id")
    exec_date: str | None = Field(None, alias="exec-date")
    exec_time: str | None = Field(None, alias="exec-time")


class Run(ALMEntity):
    """
    A single execution of a test instance.

    ``test-id``, ``testcycl-id`` (the test instance) and ``cycle-id`` tie the
    run back to the test plan; ``status`` and the execution fields record the
    outcome.
    """

    ENTITY_TYPE: ClassVar[str] = "run"
    READ_ONLY_FIELDS: ClassVar[tuple[str, ...]] = ("ver-stamp", "last-modified")

    test_id: str | None = Field(None, alias="test-id")
    testcycl_id: str | None = Field(None, alias="testcycl-id", description="ID of the test instance")
    cycle_id: str | None = Field(None, alias="cycle-id", description="ID of the test set")
    test_instance: str | None = Field(None, alias="test-instance", description="Instance number within the test set")
    status: str | None = None
    owner: str | None = None
    subtype_id: str | None = Field(None, alias="subtype-id")
    execution_date: str | None = Field(None, alias="execution-date")
    execution_time: str | None = Field(None, alias="execution-time")
    duration: str | None = None
    host: str | None = None
    comments: str | None = None


class RunStep(ALMEntity):
    """A step of a run. Run steps live under their run: ``runs/{run-id}/run-steps``."""

    ENTITY_TYPE: ClassVar[str] = "run-step"
    READ_ONLY_FIELDS: ClassVar[tuple[str, ...]] = (
        "ver-stamp",
        "last-modified",
        "parent-id",
        "test-id",
        "desstep-id",
    )

    parent_id: str | None = Field(None, alias="parent-id", description="ID of the owning run")
    status: str | None = None
    description: str | None = None
    expected: str | None = None
    actual: str | None = None
    step_order: str | None = Field(None, alias="step-order")
    execution_date: str | None = Field(None, alias="execution-date")
    execution_time: str | None = Field(None, alias="execution-time")
    test_id: str | None = Field(None, alias="test-id")
    desstep_id: str | None = Field(None, alias="desstep-id", description="ID of the design step")

    @property
    def run_id(self) -> str | None:
        return self.parent_id


class Attachment(ALMEntity):
    """Metadata of a file attached to an entity."""

    ENTITY_TYPE: ClassVar[str] = "attachment"

    file_size: str | None = Field(None, alias="file-size")
    parent_id: str | None = Field(None, alias="parent-id")
    parent_type: str | None = Field(None, alias="parent-type")
    ref_type: str | None = Field(None, alias="ref-type")
    description: str | None = None


class ALMEntityCollection(BaseModel):
    """Base class for a list of entities as returned by an ALM collection URL."""

    __test__: ClassVar[bool] = False

    ENTITY_CLASS: ClassVar[type[ALMEntity]] = ALMEntity

    entities: list[ALMEntity] = Field(default_factory=list)
    total_results: int = Field(0, alias="TotalResults")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]):
        """Build a collection from ALM's ``{"entities": [...], "TotalResults": n}``."""
        entities = [cls.ENTITY_CLASS.from_payload(entity) for entity in payload.get("entities", [])]
        return cls(entities=entities, total_results=payload.get("TotalResults", len(entities)))

    def __len__(self) -> int:
        return len(self.entities)


class TestInstances(ALMEntityCollection):
    ENTITY_CLASS: ClassVar[type[ALMEntity]] = TestInstance

    entities: list[TestInstance] = Field(default_factory=list)


class RunSteps(ALMEntityCollection):
    ENTITY_CLASS: ClassVar[type[ALMEntity]] = RunStep

    entities: list[RunStep] = Field(default_factory=list)
