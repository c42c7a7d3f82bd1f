"""
Purpose
-------
Validate `InfraLogger.for_stage`: child loggers carry the new stage label and
otherwise mirror their parent.

Key behaviors
-------------
- The child shares run_id, run_meta, level, format, and destination.
- The parent keeps its own stage.
- Entries emitted by the child carry the child's stage.

Conventions
-----------
- `write_entry` is stubbed; time is patched through the shared helper.

Downstream usage
----------------
Run with `pytest -q tests/test_infra/test_logging/test_infra_logger`.
"""

import json
from unittest.mock import MagicMock

from pytest_mock import MockerFixture

from infra.logging.infra_logger import ROOT_STAGE, InfraLogger
from tests.test_infra.test_logging.test_infra_logger.infra_logger_testing_utils import (
    TEST_EVENT,
    init_logger_for_test,
    mock_datetime_now,
)


def test_infra_logger_for_stage_copies_configuration() -> None:
    """
    Ensure a stage-bound child mirrors the parent configuration.

    Returns
    -------
    None

    Raises
    ------
    AssertionError
        If any configuration field differs or the parent stage changes.
    """

    parent: InfraLogger = init_logger_for_test(log_level="WARNING", log_format="text", stage=ROOT_STAGE)
    child: InfraLogger = parent.for_stage("cosine_similarity_scorer")

    assert child is not parent
    assert child.stage == "cosine_similarity_scorer"
    assert parent.stage == ROOT_STAGE
    assert child.run_id == parent.run_id
    assert child.run_meta == parent.run_meta
    assert child.level == "WARNING"
    assert child.format == "text"
    assert child.dest == parent.dest


def test_infra_logger_for_stage_entries_carry_stage(mocker: MockerFixture) -> None:
    """
    Verify that the JSON line written by a child names the child's stage.

    Parameters
    ----------
    mocker : MockerFixture
        Used to stub `write_entry` and patch time.

    Returns
    -------
    None

    Raises
    ------
    AssertionError
        If the serialized entry does not carry the expected stage and component.
    """

    mock_datetime_now(mocker)
    child: InfraLogger = init_logger_for_test(stage=ROOT_STAGE).for_stage("vocabulary_builder")
    mock_write_entry: MagicMock = mocker.patch.object(child, "write_entry")
    child.info(TEST_EVENT, context={"vocabulary_size": 12})

    written: dict = json.loads(mock_write_entry.call_args[0][0])
    assert written["stage"] == "vocabulary_builder"
    assert written["event"] == TEST_EVENT
    assert written["context"] == {"vocabulary_size": 12}
    assert written["timestamp"] == "2025-01-01T12:00:00Z"
