import json
from pathlib import Path

import pytest

from core.errors import StageSourceUnavailable
from core.stage_source import StageSource, parse_stage_document


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_loads_yaml_document(tmp_path):
    path = _write(tmp_path / "stages.yaml", """
stages:
  - name: Ground Truth
    prompt: "What is true for {{char}}?"
  - name: Strategy
    prompt: "Plan."
finalPrompt: "Write the reply."
""")
    source = StageSource(path)
    doc = source.load()
    assert doc.stage_names == ["Ground Truth", "Strategy"]
    assert doc.final_prompt == "Write the reply."
    assert source.loaded


def test_loads_json_document(tmp_path):
    path = _write(tmp_path / "stages.json", json.dumps({
        "stages": [{"name": "A", "prompt": "a"}],
        "final_prompt": "done",
    }))
    doc = StageSource(path).load()
    assert doc.stage_names == ["A"]
    assert doc.final_prompt == "done"


def test_missing_file_raises(tmp_path):
    with pytest.raises(StageSourceUnavailable) as exc:
        StageSource(tmp_path / "missing.yaml").load()
    assert "file not found" in str(exc.value)


def test_try_load_returns_none_on_failure(tmp_path):
    source = StageSource(tmp_path / "missing.yaml")
    assert source.try_load() is None
    assert not source.loaded


def test_unparsable_document_raises(tmp_path):
    path = _write(tmp_path / "stages.yaml", "stages: [unclosed")
    with pytest.raises(StageSourceUnavailable):
        StageSource(path).load()


@pytest.mark.parametrize("data", [
    [],
    {"finalPrompt": "x"},
    {"stages": "nope"},
    {"stages": [{"prompt": "no name"}]},
    {"stages": [{"name": "A", "prompt": "   "}]},
    {"stages": [{"name": "A", "prompt": "a"}], "finalPrompt": 42},
])
def test_invalid_structures_raise(data):
    with pytest.raises(StageSourceUnavailable):
        parse_stage_document(data)


def test_reload_clears_document_when_file_disappears(tmp_path):
    path = _write(tmp_path / "stages.yaml", "stages:\n  - {name: A, prompt: a}\n")
    source = StageSource(path)
    assert source.load() is not None
    path.unlink()
    assert source.reload() is None
    assert source.document is None


def test_default_document_ships_five_stages():
    from config import STAGES_FILE
    doc = StageSource(STAGES_FILE).load()
    assert doc.stage_names == [
        "Ground Truth", "Reality Check", "Strategy", "Dialogue Check", "Execution",
    ]
    assert "{{char}}" in doc.final_prompt


def test_invalid_utf8_is_unavailable_not_a_crash(tmp_path):
    path = tmp_path / "stages.yaml"
    path.write_bytes(b"stages:\n  - name: A\n    prompt: \"\xff\xfe bad\"\n")
    source = StageSource(path)

    with pytest.raises(StageSourceUnavailable):
        source.load()
    assert source.try_load() is None
    assert not source.loaded
