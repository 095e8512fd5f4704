"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
ALM API client for reading and writing test-management entities.

Each method maps to exactly one HTTP call made through the connector.
"""

from almrest.alm_auth import ALMAuthenticator
from almrest.alm_connector import RestConnector
from almrest.alm_models import (
    Attachment,
    Run,
    RunStep,
    RunSteps,
    Test,
    TestInstance,
    TestInstances,
    TestSet,
)
from almrest.core.config import ALMConfig
from almrest.core.logging import get_logger

logger = get_logger(__name__)

OCTET_STREAM = "application/octet-stream"


class ALMClient:
    """Client for the ALM test-management entities."""

    def __init__(self, connector: RestConnector):
        self.connector = connector
        self.auth = ALMAuthenticator(connector)

    @classmethod
    def from_config(cls, config: ALMConfig) -> "ALMClient":
        """Create a client with its own connector."""
        return cls(RestConnector(config))

    def login(self) -> None:
        """Log in with the credentials from the connector's configuration."""
        config = self.connector.config
        self.auth.login(config.username, config.password)

    def logout(self) -> None:
        self.auth.logout()

    def read_test(self, test_id: str) -> Test:
        """Read the test entity with the specified ID."""
        url = self.connector.build_entity_url("test", test_id)
        return self.connector.get(url, Test)

    def read_test_set(self, test_set_id: str) -> TestSet:
        """Read the test set entity with the specified ID."""
        url = self.connector.build_entity_url("test-set", test_set_id)
        return self.connector.get(url, TestSet)

    def read_test_instance(self, test_instance_id: str) -> TestInstance:
        """Read the test instance entity with the specified ID."""
        url = self.connector.build_entity_url("test-instance", test_instance_id)
        return self.connector.get(url, TestInstance)

    def read_test_instances(self, test_set_id: str) -> TestInstances:
        """Read the test instances that belong to a test set.

        Args:
            test_set_id: ID of the test set (``cycle-id`` on the instances)

        Returns:
            Collection of test instances
        """
        url = self.connector.build_entity_collection_url("test-instance")
        params = {"query": f"{{cycle-id[{test_set_id}]}}"}
        return self.connector.get(url, TestInstances, params=params)

    def read_run(self, run_id: str) -> Run:
        url = self.connector.build_entity_url("run", run_id)
        return self.connector.get(url, Run)

    def create_run(self, run: Run) -> Run:
        """Create a run entity.

        Args:
            run: Run to create

        Returns:
            The run as stored by the server
        """
        url = self.connector.build_entity_collection_url("run")
        return self.connector.post(url, Run, body=run)

    def update_run(self, run: Run) -> Run:
        """Update a run entity.

        Server-managed fields are cleared from ``run`` before it is sent.

        Args:
            run: Run carrying its ID and the fields to change

        Returns:
            The updated run
        """
        url = self.connector.build_entity_url("run", run.id)
        run.clear_before_update()
        return self.connector.put(url, Run, body=run)

    def read_run_steps(self, run_id: str) -> RunSteps:
        """Read the run steps of the specified run."""
        url = self.connector.build_entity_url("run", run_id) + "/run-steps"
        return self.connector.get(url, RunSteps)

    def read_run_step(self, run_id: str, run_step_id: str) -> RunStep:
        url = self.connector.build_run_step_url(run_id, run_step_id)
        return self.connector.get(url, RunStep)

    def create_run_step(self, run_step: RunStep) -> RunStep:
        """Create a run step under the run named by its ``parent-id``."""
        url = self.connector.build_entity_url("run", run_step.run_id) + "/run-steps"
        return self.connector.post(url, RunStep, body=run_step)

    def update_run_step(self, run_step: RunStep) -> RunStep:
        """Update a run step.

        The URL is built from the step's ``parent-id`` before the server-managed
        fields, ``parent-id`` among them, are cleared.
        """
        url = self.connector.build_run_step_url(run_step.run_id, run_step.id)
        run_step.clear_before_update()
        return self.connector.put(url, RunStep, body=run_step)

    def read_attachment(self, attachment_id: str) -> Attachment:
        """Read the metadata of an attachment."""
        url = self.connector.build_entity_url("attachment", attachment_id)
        return self.connector.get(url, Attachment)

    def create_run_attachment(self, run_id: str, file_name: str, file_data: bytes) -> Attachment:
        """Attach a file to a run.

        Args:
            run_id: ID of the run
            file_name: Name the file gets on the server
            file_data: Content of the file

        Returns:
            Metadata of the created attachment
        """
        url = self.connector.build_entity_url("run", run_id) + "/attachments"
        return self._create_attachment(url, file_name, file_data)

    def create_run_step_attachment(
        self, run_step_id: str, file_name: str, file_data: bytes
    ) -> Attachment:
        """Attach a file to a run step.

        Args:
            run_step_id: ID of the run step
            file_name: Name the file gets on the server
            file_data: Content of the file

        Returns:
            Metadata of the created attachment
        """
        url = self.connector.build_entity_url("run-step", run_step_id) + "/attachments"
        return self._create_attachment(url, file_name, file_data)

    def _create_attachment(self, url: str, file_name: str, file_data: bytes) -> Attachment:
        if not file_name or not file_name.strip():
            raise ValueError("Filename cannot be empty")

        logger.debug(f"Uploading {len(file_data)} bytes as {file_name}")
        return self.connector.post(
            url,
            Attachment,
            headers={"Slug": file_name},
            body=file_data,
            content_type=OCTET_STREAM,
        )
