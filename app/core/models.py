# File: core/models.py

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple, FrozenSet

from .certainty import DEFAULT_UNCERTAIN_TERMS

DEFAULT_DIAGNOSIS_PREFIX = "K-"


@dataclass(frozen=True)
class Rule:
    """Mewakili satu aturan IF-THEN dalam knowledge base."""
    id: str
    IF: Tuple[str, ...]
    THEN: str
    CF: float
    desc: str = ""

    def to_record(self) -> Dict[str, Any]:
        """Kembali ke format dokumen rules (`if`/`then`/`cf`)."""
        return {
            "id": self.id,
            "if": list(self.IF),
            "then": self.THEN,
            "cf": self.CF,
            "desc": self.desc,
        }


@dataclass(frozen=True)
class RuleSet:
    """Wadah read-only untuk rule set yang sudah divalidasi.

    Aman dipakai bersama oleh beberapa sesi inferensi sekaligus.
    """
    rules: Tuple[Rule, ...]
    uncertain_terms: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_UNCERTAIN_TERMS)
    )
    diagnosis_prefix: str = DEFAULT_DIAGNOSIS_PREFIX
    diagnosis_codes: Optional[FrozenSet[str]] = None

    def premise_keys(self) -> List[str]:
        """Semua fact key yang muncul di bagian IF, urut kemunculan."""
        keys = []
        for rule in self.rules:
            keys.extend(rule.IF)
        return list(dict.fromkeys(keys))

    def conclusion_keys(self) -> List[str]:
        """Semua fact key yang muncul di bagian THEN, urut kemunculan."""
        return list(dict.fromkeys(rule.THEN for rule in self.rules))

    def is_diagnosis(self, key: str) -> bool:
        """Apakah fact key ini adalah kode diagnosis.

        Daftar eksplisit `diagnosis_codes` diutamakan; jika tidak ada,
        dipakai konvensi prefix.
        """
        if self.diagnosis_codes is not None:
            return key in self.diagnosis_codes
        return key.startswith(self.diagnosis_prefix)

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None


@dataclass
class TraceEvent:
    """Satu kejadian pembuatan atau pembaruan fakta selama forward chaining.

    `replaced` berisi kontribusi lama rule yang sama jika rule ini menembak
    ulang karena premisnya naik; `premises` adalah nilai premis saat rule
    menembak. Keduanya hanya untuk penjelasan dan tidak masuk ke `to_row()`.
    """
    rule_id: str
    conclusion: str
    contribution: float
    desc: str = ""
    previous: Optional[float] = None
    combined: Optional[float] = None
    replaced: Optional[float] = None
    premises: Dict[str, float] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        return "created" if self.previous is None else "updated"

    @property
    def value(self) -> float:
        """Nilai fakta setelah kejadian ini."""
        return self.contribution if self.combined is None else self.combined

    def to_row(self) -> Dict[str, Any]:
        """Convert ke format dict (nilai dibulatkan 6 desimal)."""
        row: Dict[str, Any] = {
            "ruleId": self.rule_id,
            "conclusion": self.conclusion,
        }
        if self.previous is not None:
            row["previous"] = round(self.previous, 6)
        row["contribution"] = round(self.contribution, 6)
        if self.combined is not None:
            row["combined"] = round(self.combined, 6)
        row["desc"] = self.desc
        return row


@dataclass(frozen=True)
class Diagnosis:
    """Mewakili hasil akhir untuk satu kode diagnosis."""
    code: str
    cf: float

    @property
    def confidence_percent(self) -> float:
        # Format CF menjadi persentase untuk kemudahan pembacaan
        return round(self.cf * 100, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "cf": self.cf}


@dataclass
class InferenceResult:
    """Output satu sesi inferensi."""
    diagnoses: List[Diagnosis]
    trace: List[TraceEvent]
    facts: Dict[str, float]
    passes: int = 0

    @property
    def top(self) -> Optional[Diagnosis]:
        return self.diagnoses[0] if self.diagnoses else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diagnoses": [d.to_dict() for d in self.diagnoses],
            "trace": [event.to_row() for event in self.trace],
            "facts": dict(self.facts),
        }
