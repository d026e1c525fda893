"""Command line interface tests"""
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from intake.interfaces import cli

PROJECT_RULES = str(Path(__file__).resolve().parents[2] / "intake_rules.yaml")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def batch_file(tmp_path, acme_customer_data) -> str:
    path = tmp_path / "batch.json"
    path.write_text(json.dumps({
        "customers": [acme_customer_data],
        "tickets": [
            {"id": "T-1", "title": "Laptop won't boot", "requesterEmail": "support@acme.com"},
            {"id": "T-2", "title": "Laptop will not boot", "requesterEmail": "bob@acme.com"},
            {"id": "T-3", "title": "VPN outage", "description": "whole office offline"},
        ],
    }))
    return str(path)


def _invoke(runner, *args):
    return runner.invoke(cli, ["--rules", PROJECT_RULES, *args])


class TestProcessCommand:
    """ticket-intake process"""

    def test_process_batch(self, runner, batch_file):
        result = _invoke(runner, "process", batch_file)

        assert result.exit_code == 0, result.output
        tickets = json.loads(result.stdout)
        assert [t["id"] for t in tickets] == ["T-1", "T-2", "T-3"]
        assert tickets[0]["customer_match"]["match_type"] == "email"
        assert tickets[1]["customer_match"]["match_type"] == "domain"
        assert tickets[1]["duplicate_analysis"]["similar_tickets"][0]["ticket"]["id"] == "T-1"
        assert tickets[2]["classification"]["priority"] == "critical"

    def test_process_with_stats(self, runner, batch_file):
        result = _invoke(runner, "process", batch_file, "--stats")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["stats"]["tickets_processed"] == 3
        assert payload["stats"]["customers"] == 1
        assert payload["stats"]["trends"]["patterns"]["most_common_category"] == "hardware"

    def test_batch_logs_share_correlation_id(self, runner, batch_file):
        result = _invoke(runner, "process", batch_file)

        assert result.exit_code == 0, result.output
        records = [json.loads(line) for line in result.stderr.splitlines() if line.startswith("{")]
        batch = [r for r in records if r["message"].startswith("Batch ")]
        assert [r["message"].split(":")[0] for r in batch] == ["Batch started", "Batch finished"]
        assert batch[0]["correlation_id"].startswith("batch-")
        assert batch[0]["correlation_id"] == batch[1]["correlation_id"]
        assert "3 tickets processed" in batch[1]["message"]

    def test_plain_ticket_array(self, runner, tmp_path):
        path = tmp_path / "tickets.json"
        path.write_text(json.dumps([{"title": "Outlook crashes"}]))

        result = _invoke(runner, "process", str(path))

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[0]["classification"]["category"] == "software"

    def test_conflicting_ids_fail(self, runner, tmp_path):
        path = tmp_path / "tickets.json"
        path.write_text(json.dumps([{"id": "X", "title": "a"}, {"id": "X", "title": "b"}]))

        result = _invoke(runner, "process", str(path))

        assert result.exit_code == 1
        assert "already been processed" in result.stderr

    def test_invalid_json(self, runner, tmp_path):
        path = tmp_path / "tickets.json"
        path.write_text("{not json")

        result = _invoke(runner, "process", str(path))

        assert result.exit_code == 2


class TestSearchCommand:
    """ticket-intake search"""

    def test_search(self, runner, batch_file):
        result = _invoke(
            runner, "search", batch_file,
            "--title", "Laptop won't boot", "--limit", "1",
        )

        assert result.exit_code == 0, result.output
        matches = json.loads(result.stdout)
        assert len(matches) == 1
        assert matches[0]["ticket"]["id"] == "T-1"


class TestClassifyCommand:
    """ticket-intake classify"""

    def test_classify(self, runner):
        result = _invoke(runner, "classify", "Security breach", "urgent")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["category"] == "security"
        assert data["priority"] == "high"
        assert data["category_confidence"] == 0.9

    def test_classify_title_only(self, runner):
        result = _invoke(runner, "classify", "Printer jammed")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["category"] == "general"

    def test_invalid_rules_file(self, runner, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("category_rules: [")

        result = runner.invoke(cli, ["--rules", str(rules), "classify", "VPN"])

        assert result.exit_code == 1
        assert "Invalid rules file" in result.stderr
