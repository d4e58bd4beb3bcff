from unittest.mock import patch

from src.server import run


def test_main_defaults():
    with patch.object(run.uvicorn, "run") as mock_run:
        run.main([])

    mock_run.assert_called_once_with(
        "src.server.app:app", host="0.0.0.0", port=8000, reload=False, reload_dirs=None
    )


def test_main_with_reload():
    with patch.object(run.uvicorn, "run") as mock_run:
        run.main(["--port", "9001", "--reload"])

    _, kwargs = mock_run.call_args
    assert kwargs["port"] == 9001
    assert kwargs["reload"] is True
    assert kwargs["reload_dirs"] == ["src"]
