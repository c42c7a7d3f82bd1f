"""
Purpose
-------
Validate the `initialize_logger` factory: environment extraction, explicit
level override, run_id generation, run_meta defaulting, and the handoff to
`handle_fallbacks`.

Key behaviors
-------------
- `extract_env_vars` is called once; its format and destination are used.
- A valid explicit `level` wins over LOG_LEVEL; an invalid one is ignored.
- A run_id is generated only when none is given; run_meta defaults to {}.
- The returned logger is bound to the root stage.

Conventions
-----------
- Collaborators are patched at `infra.logging.infra_logger.*`.

Downstream usage
----------------
Run with `pytest -q tests/test_infra/test_logging/test_infra_logger`.
"""

from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture

from infra.logging.infra_logger import ROOT_STAGE, InfraLogger, initialize_logger
from tests.test_infra.test_logging.test_infra_logger.infra_logger_testing_utils import (
    TEST_COMPONENT_NAME,
    TEST_DEST,
    TEST_FORMAT,
    TEST_RUN_ID,
    TEST_RUN_META,
)

TEST_RUN_ID_GENERATED: str = "generated_run_id"
MISSING_RUN_ID_META_TUPLES = [
    (None, TEST_RUN_ID_GENERATED, None, {}),
    (TEST_RUN_ID, TEST_RUN_ID, None, {}),
    (None, TEST_RUN_ID_GENERATED, TEST_RUN_META, TEST_RUN_META),
    (TEST_RUN_ID, TEST_RUN_ID, TEST_RUN_META, TEST_RUN_META),
]
LEVEL_OVERRIDE_TUPLES = [
    (None, "WARNING"),
    ("debug", "DEBUG"),
    ("ERROR", "ERROR"),
    ("LOUD", "WARNING"),
]


@pytest.mark.parametrize(
    "input_run_id, expected_run_id, input_run_meta, expected_run_meta",
    MISSING_RUN_ID_META_TUPLES,
)
def test_initialize_logger_run_id_and_meta(
    mocker: MockerFixture,
    input_run_id: str | None,
    expected_run_id: str,
    input_run_meta: dict[str, str] | None,
    expected_run_meta: dict[str, str],
) -> None:
    """
    Validate defaulting when `run_id` and/or `run_meta` are omitted.

    Parameters
    ----------
    mocker : MockerFixture
        Used to patch the factory's collaborators.
    input_run_id : str | None
        Provided run_id, or None to trigger generation.
    expected_run_id : str
        run_id expected on the logger.
    input_run_meta : dict[str, str] | None
        Provided run metadata.
    expected_run_meta : dict[str, str]
        Metadata expected on the logger.

    Returns
    -------
    None

    Raises
    ------
    AssertionError
        If generation or fallback handling is wired incorrectly.
    """

    mock_extract_env_vars, mock_generate_run_id, mock_handle_fallbacks = mock_infra_logger_helpers(
        mocker
    )
    logger: InfraLogger = initialize_logger(
        TEST_COMPONENT_NAME, run_id=input_run_id, run_meta=input_run_meta
    )
    mock_extract_env_vars.assert_called_once()
    if input_run_id is None:
        mock_generate_run_id.assert_called_once_with(TEST_COMPONENT_NAME)
    else:
        mock_generate_run_id.assert_not_called()
    mock_handle_fallbacks.assert_called_once()
    assert logger.run_id == expected_run_id
    assert logger.run_meta == expected_run_meta
    assert logger.format == TEST_FORMAT
    assert logger.dest == TEST_DEST
    assert logger.stage == ROOT_STAGE


@pytest.mark.parametrize("level, expected_level", LEVEL_OVERRIDE_TUPLES)
def test_initialize_logger_level_override(
    mocker: MockerFixture, level: str | None, expected_level: str
) -> None:
    """
    An explicit valid level replaces the environment level (WARNING here).

    Parameters
    ----------
    mocker : MockerFixture
        Used to patch the factory's collaborators.
    level : str | None
        Level passed to `initialize_logger`.
    expected_level : str
        Level expected on the logger.

    Returns
    -------
    None
    """

    mock_infra_logger_helpers(mocker)
    logger: InfraLogger = initialize_logger(TEST_COMPONENT_NAME, level=level, run_id=TEST_RUN_ID)
    assert logger.level == expected_level


def mock_infra_logger_helpers(mocker: MockerFixture) -> tuple[MagicMock, MagicMock, MagicMock]:
    """
    Patch `extract_env_vars`, `generate_run_id`, and `handle_fallbacks`.

    Parameters
    ----------
    mocker : MockerFixture
        pytest-mock fixture.

    Returns
    -------
    tuple[MagicMock, MagicMock, MagicMock]
        The three mocks, in that order. The environment level is "WARNING".
    """

    mock_extract_env_vars: MagicMock = mocker.patch(
        "infra.logging.infra_logger.extract_env_vars",
        return_value=("WARNING", TEST_FORMAT, TEST_DEST),
    )
    mock_generate_run_id: MagicMock = mocker.patch(
        "infra.logging.infra_logger.generate_run_id",
        return_value=TEST_RUN_ID_GENERATED,
    )
    mock_handle_fallbacks: MagicMock = mocker.patch("infra.logging.infra_logger.handle_fallbacks")
    return mock_extract_env_vars, mock_generate_run_id, mock_handle_fallbacks
