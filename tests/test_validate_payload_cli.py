import json

from scripts import validate_payload


def _write(tmp_path, name, payload):
    path = tmp_path / name
    text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")
    return path


def test_valid_module_lists_ranked_resources(tmp_path, sample_module, capsys):
    path = _write(tmp_path, "module.json", sample_module)

    exit_code = validate_payload.main([str(path), "--section", "sec-1", "--limit", "2"])
    captured = capsys.readouterr()

    assert exit_code == 0
    report = json.loads(captured.out)
    assert report["kind"] == "module"
    assert report["valid"] is True
    assert report["resource_count"] == 4
    assert [resource["id"] for resource in report["resources"]] == ["section-0-resource-0", "section-1-resource-0"]
    assert report["resources"][0]["sectionId"] == "sec-1"
    assert report["resources"][0]["type"] == "tutorial"


def test_invalid_payload_exits_with_one(tmp_path, capsys):
    path = _write(tmp_path, "evaluation.json", {"isCorrect": True, "score": 120, "feedback": "ok"})

    exit_code = validate_payload.main([str(path), "--kind", "evaluation"])
    report = json.loads(capsys.readouterr().out)

    assert exit_code == 1
    assert report == {"kind": "evaluation", "valid": False}


def test_raw_model_output_is_accepted(tmp_path, capsys):
    path = _write(
        tmp_path,
        "question.txt",
        '回答:\n```json\n{"id": "q", "question": "Why?", "expectedAnswer": "Because"}\n```',
    )

    assert validate_payload.main([str(path), "--kind", "question"]) == 0
    assert json.loads(capsys.readouterr().out)["valid"] is True


def test_unreadable_payload_exits_with_two(tmp_path, capsys):
    path = _write(tmp_path, "broken.txt", "no json here")
    assert validate_payload.main([str(path)]) == 2
    assert capsys.readouterr().err.strip()

    assert validate_payload.main([str(tmp_path / "missing.json")]) == 2


def test_bad_configuration_exits_with_two(tmp_path, sample_module, monkeypatch, capsys):
    monkeypatch.setenv("BATCH_SIZE", "0")
    path = _write(tmp_path, "module.json", sample_module)

    assert validate_payload.main([str(path)]) == 2
    assert "BATCH_SIZE" in capsys.readouterr().err


def test_build_report_for_history():
    report = validate_payload.build_report("history", [])
    assert report == {"kind": "history", "valid": True}
