"""Test Database - Menguji loader dan validasi dokumen rules.

File ini menguji:
- database/schema.py: validasi dokumen rules (pydantic)
- database/database_manager.py: load dari file JSON/YAML, URL (httpx), dan
  data real di app/database/rules.json

Jalankan dengan: python -m pytest app/tests/test_database.py -v
"""

import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

# Tambahkan app/ ke Python path
app_dir = Path(__file__).parent.parent
sys.path.insert(0, str(app_dir))

from core.certainty import DEFAULT_UNCERTAIN_TERMS
from core.errors import RuleLoadError, RuleValidationError
from core.models import Rule
from database.database_manager import (
    DatabaseManager,
    aload_rules_from_url,
    load_rules,
    load_rules_from_file,
    load_rules_from_url,
    parse_rules_text,
)
from database.schema import parse_rule_document

VALID_DOCUMENT = {
    "rules": [
        {"id": "R1", "if": ["G1"], "then": "K-01", "cf": 0.8, "desc": "Gejala G1"},
        {"id": "R2", "if": ["G1", "G2"], "then": "K-02", "cf": 0.6, "desc": "G1 dan G2"},
    ],
    "metadata": {"uncertain_terms": {"Ya": 1.0, "Ragu": 0.5}},
}


class TestRuleSchema:
    """Test validasi dokumen rules."""

    def test_valid_document(self):
        rule_set = parse_rule_document(VALID_DOCUMENT)

        assert rule_set.rules[0] == Rule(id="R1", IF=("G1",), THEN="K-01", CF=0.8, desc="Gejala G1")
        assert rule_set.rules[1].IF == ("G1", "G2")
        assert rule_set.uncertain_terms == {"Ya": 1.0, "Ragu": 0.5}
        assert rule_set.diagnosis_prefix == "K-"
        assert rule_set.diagnosis_codes is None

    def test_missing_metadata_uses_default_terms(self):
        rule_set = parse_rule_document({"rules": VALID_DOCUMENT["rules"]})
        assert rule_set.uncertain_terms == DEFAULT_UNCERTAIN_TERMS

    def test_explicit_diagnosis_codes(self):
        doc = dict(VALID_DOCUMENT, metadata={"diagnosis_codes": ["K-02"], "diagnosis_prefix": "P"})
        rule_set = parse_rule_document(doc)

        assert rule_set.diagnosis_codes == frozenset({"K-02"})
        assert rule_set.diagnosis_prefix == "P"

    def test_missing_then_rejected(self):
        doc = {"rules": [{"id": "R1", "if": ["G1"], "cf": 0.8}]}
        with pytest.raises(RuleValidationError) as excinfo:
            parse_rule_document(doc)
        assert any("then" in p for p in excinfo.value.problems)

    @pytest.mark.parametrize("record", [
        {"id": "R1", "if": ["G1"], "then": "K-01", "cf": 1.5},
        {"id": "R1", "if": ["G1"], "then": "K-01", "cf": -0.2},
        {"id": "R1", "if": [], "then": "K-01", "cf": 0.5},
        {"id": "", "if": ["G1"], "then": "K-01", "cf": 0.5},
        {"id": "R1", "if": ["G 1"], "then": "K-01", "cf": 0.5},
        {"id": "R1", "if": ["G1"], "then": "", "cf": 0.5},
        {"id": "R1", "if": "G1", "then": "K-01", "cf": 0.5},
    ])
    def test_malformed_rule_rejected(self, record):
        with pytest.raises(RuleValidationError):
            parse_rule_document({"rules": [record]})

    def test_duplicate_ids_rejected(self):
        rules = [VALID_DOCUMENT["rules"][0], VALID_DOCUMENT["rules"][0]]
        with pytest.raises(RuleValidationError) as excinfo:
            parse_rule_document({"rules": rules})
        assert "duplicate rule ids: R1" in str(excinfo.value)

    def test_all_problems_reported(self):
        doc = {"rules": [
            {"id": "R1", "if": ["G1"], "then": "K-01", "cf": 2},
            {"id": "R2", "if": [], "then": "K-02", "cf": 0.5},
        ]}
        with pytest.raises(RuleValidationError) as excinfo:
            parse_rule_document(doc)
        assert len(excinfo.value.problems) >= 2

    def test_label_out_of_range_rejected(self):
        doc = dict(VALID_DOCUMENT, metadata={"uncertain_terms": {"Pasti": 1.2}})
        with pytest.raises(RuleValidationError):
            parse_rule_document(doc)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_rule_document({"rules": "bukan list"})

    def test_not_a_mapping(self):
        with pytest.raises(RuleValidationError):
            parse_rule_document(None)


class TestRuleFiles:
    """Test load rules dari file."""

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(VALID_DOCUMENT), encoding="utf-8")

        rule_set = load_rules_from_file(path)
        assert [r.id for r in rule_set.rules] == ["R1", "R2"]

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "rules:\n"
            "  - id: R1\n"
            "    if: [G1]\n"
            "    then: K-01\n"
            "    cf: 0.8\n"
            "    desc: Gejala G1\n",
            encoding="utf-8",
        )
        rule_set = load_rules(path)
        assert rule_set.rules[0].THEN == "K-01"

    def test_list_format(self):
        rule_set = parse_rules_text(json.dumps(VALID_DOCUMENT["rules"]))
        assert len(rule_set.rules) == 2

    def test_legacy_keyed_format(self):
        legacy = {
            "R1": {"IF": ["G1", "G2"], "THEN": "P1", "CF": 0.8, "ask_why": "Busi hitam khas"},
            "R2": {"IF": ["G3"], "THEN": "P2", "CF": 0.7},
        }
        rule_set = parse_rules_text(json.dumps(legacy))

        assert rule_set.rules[0] == Rule(
            id="R1", IF=("G1", "G2"), THEN="P1", CF=0.8, desc="Busi hitam khas",
        )
        assert rule_set.rules[1].desc == ""

    def test_missing_file(self, tmp_path):
        with pytest.raises(RuleLoadError) as excinfo:
            load_rules_from_file(tmp_path / "tidak_ada.json")
        assert "file not found" in str(excinfo.value)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{rules: [", encoding="utf-8")
        with pytest.raises(RuleLoadError):
            load_rules_from_file(path)

    def test_invalid_document_in_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"rules": [{"id": "R1"}]}), encoding="utf-8")
        with pytest.raises(RuleValidationError):
            load_rules_from_file(path)


class TestRuleUrl:
    """Test load rules lewat HTTP dengan httpx.MockTransport."""

    @staticmethod
    def handler(request):
        if request.url.path == "/rules.json":
            return httpx.Response(200, json=VALID_DOCUMENT)
        if request.url.path == "/rules.yaml":
            return httpx.Response(
                200,
                text="rules:\n  - {id: R1, if: [G1], then: K-01, cf: 0.8}\n",
                headers={"content-type": "application/yaml"},
            )
        return httpx.Response(404, text="not found")

    def test_load_from_url(self):
        with httpx.Client(transport=httpx.MockTransport(self.handler)) as client:
            rule_set = load_rules_from_url("https://kb.example/rules.json", client=client)
        assert len(rule_set.rules) == 2

    def test_load_yaml_from_url(self):
        with httpx.Client(transport=httpx.MockTransport(self.handler)) as client:
            rule_set = load_rules("https://kb.example/rules.yaml", client=client)
        assert rule_set.rules[0].id == "R1"

    def test_http_error(self):
        with httpx.Client(transport=httpx.MockTransport(self.handler)) as client:
            with pytest.raises(RuleLoadError) as excinfo:
                load_rules_from_url("https://kb.example/missing.json", client=client)
        assert excinfo.value.source == "https://kb.example/missing.json"

    def test_async_load(self):
        async def fetch():
            async with httpx.AsyncClient(transport=httpx.MockTransport(self.handler)) as client:
                return await aload_rules_from_url("https://kb.example/rules.json", client=client)

        rule_set = asyncio.run(fetch())
        assert [r.id for r in rule_set.rules] == ["R1", "R2"]

    def test_async_http_error(self):
        async def fetch():
            async with httpx.AsyncClient(transport=httpx.MockTransport(self.handler)) as client:
                return await aload_rules_from_url("https://kb.example/nope", client=client)

        with pytest.raises(RuleLoadError):
            asyncio.run(fetch())


class TestDatabaseConnection:
    """Test koneksi dan load data dari database files."""

    def setup_method(self):
        self.db_dir = Path(__file__).parent.parent / "database"
        self.db = DatabaseManager(self.db_dir)

    def test_database_file_exists(self):
        assert "rules.json" in self.db.list_rule_files()

    def test_load_rule_set(self):
        rule_set = self.db.load_rule_set()

        assert self.db.rule_set is rule_set
        assert len(rule_set.rules) == 7
        assert all(0.0 <= r.CF <= 1.0 for r in rule_set.rules)
        assert "I-CAMPURAN-KAYA" in rule_set.conclusion_keys()
        assert not rule_set.is_diagnosis("I-CAMPURAN-KAYA")

    def test_from_config(self):
        db = DatabaseManager.from_config({"database": {"path": "database/"}}, base_dir=app_dir)
        assert db.db_path == app_dir / "database"

    def test_missing_directory(self, tmp_path):
        db = DatabaseManager(tmp_path / "kosong")
        assert db.list_rule_files() == []
        with pytest.raises(RuleLoadError):
            db.load_rule_set()
