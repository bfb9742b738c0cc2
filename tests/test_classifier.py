"""Tests for plan line classification and fence stripping."""

import pytest

from agentic_task_runner.classifier import (
    DIRECTORY_CHANGE,
    FILE_CREATION,
    SHELL_COMMAND,
    SKIP,
    candidate_commands,
    classify,
    is_long_running,
    strip_code_fences,
)


class TestClassify:
    """The closed set of line shapes."""

    def test_cd_is_directory_change(self):
        parsed = classify("cd src")
        assert parsed.kind == DIRECTORY_CHANGE
        assert parsed.target == "src"

    def test_cd_target_is_trimmed(self):
        assert classify("cd    my-app  ").target == "my-app"

    def test_touch_is_file_creation(self):
        parsed = classify("touch app.py")
        assert parsed.kind == FILE_CREATION
        assert parsed.target == "app.py"

    def test_bare_path_is_file_creation(self):
        parsed = classify("src/index.html")
        assert parsed.kind == FILE_CREATION
        assert parsed.target == "src/index.html"

    def test_redirection_is_file_creation(self):
        parsed = classify("echo hello > notes.txt")
        assert parsed.kind == FILE_CREATION
        assert parsed.target == "notes.txt"

    def test_glued_redirection_target(self):
        assert classify("echo hello >notes.txt").target == "notes.txt"

    def test_descriptor_duplication_is_not_redirection(self):
        assert classify("npm test 2>&1").kind == SHELL_COMMAND

    def test_running_a_script_is_shell_command(self):
        assert classify("node index.js").kind == SHELL_COMMAND
        assert classify("python app.py").kind == SHELL_COMMAND

    def test_generic_command(self):
        parsed = classify("npm install express")
        assert parsed.kind == SHELL_COMMAND
        assert parsed.target is None

    @pytest.mark.parametrize("line", ["", "   ", "# comment", "```bash", "```", "bash", "BASH"])
    def test_skip(self, line):
        assert classify(line).kind == SKIP

    def test_cd_wins_over_file_extension(self):
        assert classify("cd app.js").kind == DIRECTORY_CHANGE


class TestLongRunning:

    @pytest.mark.parametrize("line", ["npm run dev", "yarn dev", "pnpm dev", "cd web && npm run dev"])
    def test_dev_servers_flagged(self, line):
        assert is_long_running(line)

    def test_build_is_not_flagged(self):
        assert not is_long_running("npm run build")


class TestCandidateCommands:

    def test_filters_skip_and_long_running(self):
        plan = "```bash\n# setup\nmkdir app\n\nnpm run dev\ncd app\n```"
        candidates, long_running = candidate_commands(plan)
        assert candidates == ["mkdir app", "cd app"]
        assert long_running == ["npm run dev"]

    def test_keeps_duplicates_in_order(self):
        candidates, _ = candidate_commands("ls\nls\npwd")
        assert candidates == ["ls", "ls", "pwd"]


class TestStripCodeFences:

    def test_strips_fence_with_language(self):
        assert strip_code_fences("```python\nprint(1)\n```") == "print(1)"

    def test_strips_closer_glued_to_code(self):
        assert strip_code_fences("```js\nconsole.log(1)```") == "console.log(1)"

    def test_plain_text_untouched(self):
        assert strip_code_fences("  print(1)\n") == "print(1)"

    @pytest.mark.parametrize("text", [
        "```python\nprint(1)\n```",
        "```\n```python\nx = 1\n```\n```",
        "```",
        "",
        "no fences here",
        "```bash\nls\n```\n\n",
        "code\n```",
    ])
    def test_idempotent(self, text):
        once = strip_code_fences(text)
        assert strip_code_fences(once) == once
