import pytest

from wallpanel.errors import CommandError
from wallpanel.utils.command import format_argv, run_command


def test_format_argv_quotes():
    assert format_argv(["echo", "two words"]) == "echo 'two words'"


def test_success_captures_output():
    result = run_command(["sh", "-c", "echo hello"])
    assert result.returncode == 0
    assert result.stdout.strip() == "hello"


def test_failure_raises_with_output():
    with pytest.raises(CommandError) as excinfo:
        run_command(["sh", "-c", "echo oops >&2; exit 3"])
    assert excinfo.value.returncode == 3
    assert "oops" in excinfo.value.output


def test_failure_without_check_returns_result():
    result = run_command(["sh", "-c", "exit 2"], check=False)
    assert result.returncode == 2


def test_missing_executable():
    with pytest.raises(CommandError) as excinfo:
        run_command(["definitely-not-a-wallpanel-command"])
    assert excinfo.value.returncode == 127

    result = run_command(["definitely-not-a-wallpanel-command"], check=False)
    assert result.returncode == 127


def test_environment_is_layered(monkeypatch):
    monkeypatch.setenv("WALLPANEL_OUTER", "kept")
    result = run_command(["sh", "-c", 'echo "$WALLPANEL_OUTER $DEBIAN_FRONTEND"'], env={"DEBIAN_FRONTEND": "noninteractive"})
    assert result.stdout.strip() == "kept noninteractive"
