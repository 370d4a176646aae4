from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from bumpwise.__main__ import main


@pytest.mark.unit
class TestMain:
    """Tests for the ``python -m bumpwise`` entry point."""

    @pytest.mark.parametrize(
        "exit_code",
        [0, 1, 2, 130],
        ids=["success", "error", "usage", "interrupted"],
    )
    def test_returns_cli_exit_code(self, exit_code: int) -> None:
        """Test main returns the exit code from the CLI's main."""
        mock_cli_module = MagicMock()
        mock_cli_module.main = MagicMock(return_value=exit_code)

        with patch.dict("sys.modules", {"bumpwise.cli": mock_cli_module}):
            result = main()

        assert result == exit_code
        mock_cli_module.main.assert_called_once_with()
