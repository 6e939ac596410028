"""Tests for the clawmemory command line."""

from unittest.mock import Mock, patch

import pytest

from ..cli import CommandUsageError, main, run_command_line
from ..client import RemoteError
from ..config_loader import MemoryConfig
from ..models import Memory, MemoryType


@pytest.fixture
def client():
    return Mock()


@pytest.fixture
def config():
    return MemoryConfig(api_key="cm_test", recall_threshold=0.3)


class TestRunCommandLine:
    """Tests for parsing and running subcommands."""

    def test_recall(self, client, config):
        client.recall.return_value = [
            Memory(id="m1", content="Prefers dark mode", type=MemoryType.PREFERENCE, relevance=0.87),
            Memory(id="m2", content="Name is Alex", type=MemoryType.FACT, relevance=0.5),
        ]

        lines = run_command_line('recall "ui theme" --limit 2', client, config)

        client.recall.assert_called_once_with("ui theme", 2, 0.3)
        assert lines == [
            "[preference] Prefers dark mode (87%)",
            "[fact] Name is Alex (50%)",
        ]

    def test_recall_default_limit(self, client, config):
        client.recall.return_value = []

        lines = run_command_line("recall theme", client, config)

        client.recall.assert_called_once_with("theme", 5, 0.3)
        assert lines == ["No memories found."]

    def test_store(self, client, config):
        client.store.return_value = "m9"

        lines = run_command_line("store 'Deploys happen on Tuesdays' --type event", client, config)

        client.store.assert_called_once_with("Deploys happen on Tuesdays", "event")
        assert lines == ["Stored: m9"]

    def test_store_default_type(self, client, config):
        client.store.return_value = "m9"
        run_command_line("store 'Lives in Oslo'", client, config)
        client.store.assert_called_once_with("Lives in Oslo", "fact")

    def test_list(self, client, config):
        client.list.return_value = [Memory(id="a1", content="Lives in Oslo", type=MemoryType.FACT)]

        lines = run_command_line("list --limit 3", client, config)

        client.list.assert_called_once_with(3)
        assert lines == ["a1 [fact] Lives in Oslo"]

    def test_delete(self, client, config):
        client.delete.return_value = True
        assert run_command_line("delete a1", client, config) == ["Deleted: a1"]

        client.delete.return_value = False
        assert run_command_line("delete a2", client, config) == ["Not deleted: a2"]

    @pytest.mark.parametrize("line", [
        "",
        "forget everything",
        "recall",
        "recall x --limit many",
        "store x --type opinion",
        'recall "unterminated',
    ])
    def test_usage_errors(self, client, config, line):
        with pytest.raises(CommandUsageError):
            run_command_line(line, client, config)

    def test_remote_error_propagates(self, client, config):
        client.recall.side_effect = RemoteError(500, "Internal Server Error")
        with pytest.raises(RemoteError):
            run_command_line("recall x", client, config)


class TestMain:
    """Tests for the console script entry point."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for var in ("CLAWMEMORY_API_KEY", "CLAWMEMORY_AGENT_ID", "CLAWMEMORY_BASE_URL",
                    "CLAWMEMORY_RECALL_THRESHOLD", "CLAWMEMORY_CONFIG_PATH"):
            monkeypatch.delenv(var, raising=False)

    def test_missing_key(self, tmp_path, capsys):
        code = main(["--env-file", str(tmp_path / "missing.env"), "recall", "x"])

        assert code == 1
        assert "CLAWMEMORY_API_KEY" in capsys.readouterr().err

    def test_recall(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("CLAWMEMORY_API_KEY", "cm_test")
        monkeypatch.setenv("CLAWMEMORY_AGENT_ID", "agent-7")

        with patch("clawmemory.plugins.memory.cli.ClawMemoryClient") as client_cls:
            client_cls.return_value.recall.return_value = [
                Memory(id="m1", content="Prefers dark mode", type=MemoryType.PREFERENCE, relevance=0.9),
            ]
            code = main(["--env-file", str(tmp_path / "missing.env"), "recall", "theme"])

        assert code == 0
        client_cls.assert_called_once()
        assert client_cls.call_args.args == ("cm_test",)
        assert client_cls.call_args.kwargs["agent_id"] == "agent-7"
        assert capsys.readouterr().out == "[preference] Prefers dark mode (90%)\n"

    def test_env_file_loaded(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("CLAWMEMORY_API_KEY=cm_from_file\n")

        with patch("clawmemory.plugins.memory.cli.load_dotenv") as load_dotenv, \
                patch("clawmemory.plugins.memory.cli.ClawMemoryClient"):
            main(["--env-file", str(env_file), "list"])

        load_dotenv.assert_called_once_with(str(env_file))

    def test_bad_arguments_exit(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--env-file", str(tmp_path / "missing.env"), "recall"])
