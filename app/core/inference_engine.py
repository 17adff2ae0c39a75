"""Inference Engine.

Modul ini berisi:
- evaluate_rule: kontribusi satu rule terhadap fakta saat ini
- InferenceEngine: forward chaining sampai fixed point dengan
  kombinasi Certainty Factor
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from .certainty import antecedent_cf
from .errors import InferenceLimitError
from .explanation import ExplanationFacility
from .models import Rule, TraceEvent
from .working_memory import WorkingMemory

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 1e-6
DEFAULT_MAX_PASSES = 1000


class ChainingOutcome(NamedTuple):
    facts: Dict[str, float]
    trace: List[TraceEvent]
    passes: int


def evaluate_rule(rule: Rule, facts: Mapping[str, float]) -> float:
    """Hitung kontribusi rule: CF rule * MIN(CF premis).

    Premis yang belum pernah dievaluasi (tidak ada di facts) membuat
    kontribusi tepat 0.0. Premis bernilai 0 tetap dihitung ada.
    """
    premise_cfs = []
    for premise in rule.IF:
        cf = facts.get(premise)
        if cf is None:
            return 0.0
        premise_cfs.append(cf)
    if not premise_cfs:
        return 0.0
    return rule.CF * antecedent_cf(premise_cfs)


class InferenceEngine:
    """Forward chaining engine dengan Certainty Factor.

    Engine tidak menyimpan state antar run; satu instance aman dipakai
    oleh banyak sesi.
    """

    def __init__(
        self,
        epsilon: float = DEFAULT_EPSILON,
        max_passes: Optional[int] = DEFAULT_MAX_PASSES,
    ):
        self.epsilon = epsilon
        self.max_passes = max_passes

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "InferenceEngine":
        inference_cfg = config.get("inference", {})
        return cls(
            epsilon=float(inference_cfg.get("epsilon", DEFAULT_EPSILON)),
            max_passes=inference_cfg.get("max_passes", DEFAULT_MAX_PASSES),
        )

    def forward_chaining(
        self,
        rules: Sequence[Rule],
        initial_facts: Mapping[str, float],
        explanation: Optional[ExplanationFacility] = None,
    ) -> ChainingOutcome:
        """Jalankan forward chaining sampai tidak ada fakta yang berubah.

        Args:
            rules: rules dalam urutan evaluasi
            initial_facts: mapping fact key -> CF (tidak dimodifikasi)
            explanation: penampung trace (optional, dibuat baru jika None)

        Returns:
            ChainingOutcome(facts, trace, passes)

        Raises:
            InferenceLimitError: jika max_passes terlampaui
        """
        memory = WorkingMemory(initial_facts)
        if explanation is None:
            explanation = ExplanationFacility()
        start = len(explanation.trace)

        passes = self._inference_loop(rules, memory, explanation)

        trace = explanation.trace[start:]
        logger.info(
            "Forward chaining converged after %d pass(es): %d fact(s), %d event(s)",
            passes, len(memory), len(trace),
        )
        return ChainingOutcome(memory.snapshot(), trace, passes)

    def _inference_loop(
        self,
        rules: Sequence[Rule],
        memory: WorkingMemory,
        explanation: ExplanationFacility,
    ) -> int:
        """Ulangi pass penuh atas semua rules sampai satu pass tidak mengubah apa pun.

        Setiap update menaikkan nilai fakta secara ketat dan nilainya dibatasi
        1, jadi loop selalu berhenti; max_passes hanya pengaman.
        """
        passes = 0
        changed = True
        while changed:
            if self.max_passes is not None and passes >= self.max_passes:
                logger.error("Forward chaining exceeded %d passes", self.max_passes)
                raise InferenceLimitError(passes, self.max_passes)
            passes += 1
            changed = False
            for rule in rules:
                event = self._fire_rule(rule, memory)
                if event is not None:
                    explanation.add_event(event)
                    changed = True
        return passes

    def _fire_rule(self, rule: Rule, memory: WorkingMemory) -> Optional[TraceEvent]:
        """Tembakkan rule dan update working memory.

        Returns None jika tidak ada perubahan signifikan.
        """
        contribution = evaluate_rule(rule, memory.facts_cf)
        if contribution <= 0:
            return None

        conclusion = rule.THEN
        # Kontribusi rule yang sama hanya dihitung sekali; dihitung ulang
        # hanya jika premisnya naik sejak pass sebelumnya.
        recorded = memory.get_contribution(conclusion, rule.id)
        if recorded is not None and abs(contribution - recorded) <= self.epsilon:
            return None

        premises = {key: memory.facts_cf[key] for key in rule.IF}
        previous = memory.get_fact(conclusion)
        combined = memory.record_contribution(conclusion, rule.id, contribution)
        if previous is None:
            memory.create_fact(conclusion, contribution)
            logger.debug("%s created %s = %.6f", rule.id, conclusion, contribution)
            return TraceEvent(
                rule_id=rule.id,
                conclusion=conclusion,
                contribution=contribution,
                desc=rule.desc,
                premises=premises,
            )

        if abs(combined - previous) <= self.epsilon:
            return None

        memory.update_fact(conclusion, combined)
        logger.debug(
            "%s updated %s: %.6f -> %.6f", rule.id, conclusion, previous, combined
        )
        return TraceEvent(
            rule_id=rule.id,
            conclusion=conclusion,
            contribution=contribution,
            desc=rule.desc,
            previous=previous,
            combined=combined,
            replaced=recorded,
            premises=premises,
        )
