"""Tests for configuration loading and the command line flow"""

import io
import json

import pytest

import main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the real environment and any local .env out of the tests"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    for name in ("LLM_PROVIDER", "HISTORY_FILE", "OUTPUT_FILE",
                 "GROQ_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY",
                 "PROMPT_VARIANT"):
        monkeypatch.delenv(name, raising=False)


class StubLLMClient:
    def __init__(self, provider: str = "groq"):
        self.provider = provider

    def generate(self, prompt: str, temperature: float = 0.7):
        return "# Answer\n- point *one*"


def test_load_config_defaults(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "key")

    config = main.load_config()

    assert config['llm_provider'] == 'groq'
    assert config['history_file'] == 'history.json'
    assert config['output_file'] == 'output.html'
    assert config['prompt_variant'] == 'default'


def test_load_config_rejects_unknown_provider(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "gemini")

    with pytest.raises(ValueError, match="LLM_PROVIDER"):
        main.load_config()


@pytest.mark.parametrize("provider,key_env", [
    ("groq", "GROQ_API_KEY"),
    ("openai", "OPENAI_API_KEY"),
    ("anthropic", "ANTHROPIC_API_KEY"),
])
def test_load_config_requires_api_key(monkeypatch, provider, key_env):
    """Test the selected provider's key must be present"""
    monkeypatch.setenv("LLM_PROVIDER", provider)

    with pytest.raises(ValueError, match=key_env):
        main.load_config()
    assert main.load_config(require_api_key=False)['llm_provider'] == provider


def test_render_only(tmp_path):
    """Test rendering a file without calling the AI service"""
    source = tmp_path / "reply.md"
    source.write_text("1. a <b>\n2. b", encoding='utf-8')
    output = tmp_path / "out.html"

    code = main.main(["explain", str(source), "--render-only", "-o", str(output)])

    assert code == 0
    assert output.read_text(encoding='utf-8') == "<ol><li>a &lt;b&gt;</li><li>b</li></ol>"


def test_process_from_stdin(monkeypatch, tmp_path):
    """Test the full flow writes HTML and records history"""
    monkeypatch.setenv("GROQ_API_KEY", "key")
    monkeypatch.setattr(main, "LLMClient", StubLLMClient)
    monkeypatch.setattr("sys.stdin", io.StringIO("What is a list?"))

    code = main.main(["summarize"])

    assert code == 0
    html_out = (tmp_path / "output.html").read_text(encoding='utf-8')
    assert html_out == "<h2>Answer</h2><ul><li>point <em>one</em></li></ul>"

    saved = json.loads((tmp_path / "history.json").read_text(encoding='utf-8'))
    assert saved[0]['action'] == 'summarize'
    assert saved[0]['input_text'] == 'What is a list?'


def test_failed_request_returns_error_code(monkeypatch, tmp_path):
    class FailingClient(StubLLMClient):
        def generate(self, prompt, temperature=0.7):
            raise TimeoutError("slow")

    monkeypatch.setenv("GROQ_API_KEY", "key")
    monkeypatch.setattr(main, "LLMClient", FailingClient)
    monkeypatch.setattr("sys.stdin", io.StringIO("text"))

    assert main.main(["rewrite"]) == 1
    assert "unavailable" in (tmp_path / "output.html").read_text(encoding='utf-8')


def test_missing_input_file_returns_error_code(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "key")

    assert main.main(["explain", "does-not-exist.txt"]) == 1


def test_history_and_delete(tmp_path, capsys):
    """Test listing and deleting history without an API key"""
    (tmp_path / "history.json").write_text(json.dumps([
        {"id": 1, "input_text": "first", "action": "explain",
         "output": "x", "created_at": "2026-01-01T10:00:00"},
        {"id": 2, "input_text": "second", "action": "rewrite",
         "output": "y", "created_at": "2026-01-02T10:00:00"},
    ]), encoding='utf-8')

    assert main.main(["--history"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "page 1/1 (2 entries)"
    assert lines[1].startswith("[2] 2026-01-02T10:00:00 rewrite: second")

    assert main.main(["--delete", "1"]) == 0
    assert main.main(["--delete", "1"]) == 1
    saved = json.loads((tmp_path / "history.json").read_text(encoding='utf-8'))
    assert [entry['id'] for entry in saved] == [2]


def test_load_config_rejects_unknown_prompt_variant(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "key")
    monkeypatch.setenv("PROMPT_VARIANT", "pirate")

    with pytest.raises(ValueError, match="PROMPT_VARIANT"):
        main.load_config()


def test_prompt_variant_reaches_the_service(monkeypatch, tmp_path):
    """Test PROMPT_VARIANT selects the template used for the request"""
    from texthelper import prompts

    templates = tmp_path / "templates"
    (templates / "default").mkdir(parents=True)
    (templates / "default" / "explain.txt").write_text("Explain: {text}", encoding='utf-8')
    (templates / "kids").mkdir()
    (templates / "kids" / "explain.txt").write_text("Explain to a child: {text}", encoding='utf-8')
    monkeypatch.setattr(prompts, "TEMPLATES_DIR", templates)
    prompts.load_template.cache_clear()

    sent = []

    class RecordingClient(StubLLMClient):
        def generate(self, prompt, temperature=0.7):
            sent.append(prompt)
            return "ok"

    monkeypatch.setenv("GROQ_API_KEY", "key")
    monkeypatch.setenv("PROMPT_VARIANT", "Kids")
    monkeypatch.setattr(main, "LLMClient", RecordingClient)
    monkeypatch.setattr("sys.stdin", io.StringIO("rain"))

    try:
        assert main.main(["explain"]) == 0
    finally:
        prompts.load_template.cache_clear()
    assert sent == ["Explain to a child: rain"]


def test_render_only_with_file_as_only_argument(monkeypatch, tmp_path):
    """Test a lone file argument is read as input, not taken as the action"""
    source = tmp_path / "reply.md"
    source.write_text("# Hi", encoding='utf-8')
    monkeypatch.setattr("sys.stdin", io.StringIO("FROM STDIN"))

    assert main.main(["--render-only", str(source)]) == 0
    assert (tmp_path / "output.html").read_text(encoding='utf-8') == "<h2>Hi</h2>"


def test_file_as_only_argument_uses_explain(monkeypatch, tmp_path):
    sent = []

    class RecordingClient(StubLLMClient):
        def generate(self, prompt, temperature=0.7):
            sent.append(prompt)
            return "ok"

    source = tmp_path / "notes.txt"
    source.write_text("from file", encoding='utf-8')
    monkeypatch.setenv("GROQ_API_KEY", "key")
    monkeypatch.setattr(main, "LLMClient", RecordingClient)
    monkeypatch.setattr("sys.stdin", io.StringIO("FROM STDIN"))

    assert main.main([str(source)]) == 0
    assert sent == ["Explain this clearly:\nfrom file"]


def test_action_is_case_insensitive():
    args = main.parse_args(["SUMMARIZE", "notes.txt"])

    assert args.action == "summarize"
    assert args.input == "notes.txt"


def test_no_arguments_reads_stdin_with_explain():
    args = main.parse_args([])

    assert args.action == "explain"
    assert args.input == "-"


def test_unknown_action_with_input_is_rejected(capsys):
    """Test an unknown action is reported instead of silently explained"""
    with pytest.raises(SystemExit) as excinfo:
        main.parse_args(["translate", "notes.txt"])

    assert excinfo.value.code == 2
    assert "unknown action 'translate'" in capsys.readouterr().err
