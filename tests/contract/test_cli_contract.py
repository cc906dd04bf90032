from __future__ import annotations

import pytest

from excelmap.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main


def test_exit_code_values():
    assert (EXIT_SUCCESS_ALL, EXIT_PARTIAL_FAILURE, EXIT_FATAL) == (0, 2, 1)


def test_workbook_argument_is_required(clean_logging, capsys):
    with pytest.raises(SystemExit) as e:
        main([])
    assert e.value.code == 2
