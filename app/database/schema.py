"""Skema dokumen rules.

Dokumen mentah (JSON/YAML) divalidasi di sini sebelum sampai ke engine,
sehingga core boleh berasumsi semua rule terbentuk dengan benar:

    {
        "rules": [{"id": "R1", "if": ["G1"], "then": "K-01", "cf": 0.8, "desc": "..."}],
        "metadata": {"uncertain_terms": {"Yakin": 0.6, ...}}
    }
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from core.certainty import DEFAULT_UNCERTAIN_TERMS
from core.errors import RuleValidationError
from core.models import DEFAULT_DIAGNOSIS_PREFIX, Rule, RuleSet

FACT_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def _check_fact_key(value: str) -> str:
    if not FACT_KEY_PATTERN.match(value):
        raise ValueError(f"invalid fact key {value!r}")
    return value


class RuleRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    premises: List[str] = Field(alias="if", min_length=1)
    conclusion: str = Field(alias="then")
    cf: float = Field(ge=0.0, le=1.0)
    desc: str = ""

    @field_validator("premises")
    @classmethod
    def _premise_keys(cls, value: List[str]) -> List[str]:
        return [_check_fact_key(key) for key in value]

    @field_validator("conclusion")
    @classmethod
    def _conclusion_key(cls, value: str) -> str:
        return _check_fact_key(value)

    def to_rule(self) -> Rule:
        return Rule(
            id=self.id,
            IF=tuple(self.premises),
            THEN=self.conclusion,
            CF=self.cf,
            desc=self.desc,
        )


class RuleMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uncertain_terms: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_UNCERTAIN_TERMS)
    )
    diagnosis_prefix: str = Field(default=DEFAULT_DIAGNOSIS_PREFIX, min_length=1)
    diagnosis_codes: Optional[List[str]] = None

    @field_validator("uncertain_terms")
    @classmethod
    def _term_range(cls, value: Dict[str, float]) -> Dict[str, float]:
        for label, cf in value.items():
            if not 0.0 <= cf <= 1.0:
                raise ValueError(f"label {label!r} maps to {cf}, expected a value in [0, 1]")
        return value


class RuleDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rules: List[RuleRecord]
    metadata: Optional[RuleMetadata] = None

    @model_validator(mode="after")
    def _unique_ids(self) -> "RuleDocument":
        seen = set()
        duplicates = []
        for record in self.rules:
            if record.id in seen:
                duplicates.append(record.id)
            seen.add(record.id)
        if duplicates:
            raise ValueError(f"duplicate rule ids: {', '.join(duplicates)}")
        return self

    def to_rule_set(self) -> RuleSet:
        metadata = self.metadata or RuleMetadata()
        codes = metadata.diagnosis_codes
        return RuleSet(
            rules=tuple(record.to_rule() for record in self.rules),
            uncertain_terms=dict(metadata.uncertain_terms),
            diagnosis_prefix=metadata.diagnosis_prefix,
            diagnosis_codes=frozenset(codes) if codes is not None else None,
        )


def _format_error(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def parse_rule_document(data: Any) -> RuleSet:
    """Validasi dokumen rules mentah dan bangun RuleSet.

    Raises:
        RuleValidationError: berisi semua masalah yang ditemukan
    """
    try:
        document = RuleDocument.model_validate(data)
    except ValidationError as exc:
        raise RuleValidationError([_format_error(err) for err in exc.errors()]) from exc
    return document.to_rule_set()
