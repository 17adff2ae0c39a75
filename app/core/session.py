"""Inference Session.

Orkestrasi satu konsultasi:
1. Terjemahkan jawaban user (label linguistik) ke CF awal
2. Jalankan forward chaining
3. Ekstrak dan urutkan diagnosis

InferenceSession dibuat dan dioper oleh caller; tidak ada registry global.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from .certainty import label_to_cf
from .errors import UnknownFactKeyError
from .explanation import ExplanationFacility
from .inference_engine import InferenceEngine
from .models import Diagnosis, InferenceResult, RuleSet

logger = logging.getLogger(__name__)


class InferenceSession:
    """Menjalankan inferensi terhadap satu rule set yang sudah divalidasi.

    Rule set bersifat read-only, jadi satu session boleh dipakai berulang
    kali; setiap panggilan run_inference memiliki fakta dan trace sendiri.
    """

    def __init__(
        self,
        rule_set: RuleSet,
        engine: Optional[InferenceEngine] = None,
        strict_keys: bool = False,
    ):
        self.rule_set = rule_set
        self.engine = engine or InferenceEngine()
        self.strict_keys = strict_keys
        self._known_keys = set(rule_set.premise_keys()) | set(rule_set.conclusion_keys())

    @classmethod
    def from_config(cls, rule_set: RuleSet, config: Dict[str, Any]) -> "InferenceSession":
        return cls(
            rule_set,
            engine=InferenceEngine.from_config(config),
            strict_keys=bool(config.get("inference", {}).get("strict_keys", False)),
        )

    def initial_facts(self, user_inputs: Mapping[str, Optional[str]]) -> Dict[str, float]:
        """Konversi jawaban user ke fakta awal (fact key -> CF)."""
        unknown = [key for key in user_inputs if key not in self._known_keys]
        if unknown:
            if self.strict_keys:
                raise UnknownFactKeyError(unknown, sorted(self._known_keys))
            logger.warning("Input keys not used by any rule: %s", ", ".join(unknown))

        terms = self.rule_set.uncertain_terms
        facts: Dict[str, float] = {}
        for key, label in user_inputs.items():
            if label and label not in terms:
                logger.debug("Unrecognized label %r for %s, treated as 0", label, key)
            facts[key] = label_to_cf(label, terms)
        return facts

    def run_inference(self, user_inputs: Mapping[str, Optional[str]]) -> InferenceResult:
        facts = self.initial_facts(user_inputs)
        explanation = ExplanationFacility(self.rule_set)
        outcome = self.engine.forward_chaining(self.rule_set.rules, facts, explanation)
        diagnoses = self.extract_diagnoses(outcome.facts)
        if diagnoses:
            logger.info(
                "Top diagnosis %s (CF %.3f) from %d answer(s)",
                diagnoses[0].code, diagnoses[0].cf, len(user_inputs),
            )
        else:
            logger.info("No diagnosis supported by %d answer(s)", len(user_inputs))
        return InferenceResult(
            diagnoses=diagnoses,
            trace=outcome.trace,
            facts=outcome.facts,
            passes=outcome.passes,
        )

    def extract_diagnoses(self, facts: Mapping[str, float]) -> List[Diagnosis]:
        """Ambil fakta diagnosis dengan CF > 0, urut CF menurun.

        sort() stabil: CF yang sama tetap dalam urutan insertion mapping fakta.
        """
        diagnoses = [
            Diagnosis(code=key, cf=round(value, 6))
            for key, value in facts.items()
            if self.rule_set.is_diagnosis(key) and value > 0
        ]
        diagnoses.sort(key=lambda d: d.cf, reverse=True)
        return diagnoses


def run_inference(
    rule_data: Union[RuleSet, Mapping[str, Any]],
    user_inputs: Mapping[str, Optional[str]],
    engine: Optional[InferenceEngine] = None,
) -> Dict[str, Any]:
    """Satu kali inferensi dari dokumen rules mentah atau RuleSet.

    Returns:
        dict dengan keys "diagnoses", "trace", "facts"
    """
    if isinstance(rule_data, RuleSet):
        rule_set = rule_data
    else:
        # Impor lokal: database.schema bergantung pada core.models
        from database.schema import parse_rule_document
        rule_set = parse_rule_document(rule_data)
    return InferenceSession(rule_set, engine=engine).run_inference(user_inputs).to_dict()
