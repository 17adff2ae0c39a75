"""
Working Memory Module
Menyimpan fakta-fakta (fact key -> CF) selama satu kali forward chaining
"""

from typing import Dict, Iterable, Mapping, Optional
from datetime import datetime

from .certainty import combine_cf


class WorkingMemory:
    """
    Working Memory untuk satu run inferensi.

    Setiap run memiliki instance sendiri; tidak ada state yang dibagi antar
    run. Fakta awal disalin (shallow copy) sehingga mapping milik caller
    tidak pernah berubah.

    Nilai fakta turunan = kombinasi CF dari kontribusi terakhir tiap rule
    yang menyimpulkannya. Nilai yang sudah ada sejak awal (input user)
    berlaku sebagai batas bawah.
    """

    def __init__(self, initial_facts: Optional[Mapping[str, float]] = None):
        self.facts_cf: Dict[str, float] = {}
        self.initial_cf: Dict[str, float] = {}
        # conclusion -> {rule_id: kontribusi terakhir}
        self.contributions: Dict[str, Dict[str, float]] = {}
        self.session_id: str = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.metadata: Dict = {
            "start_time": datetime.now(),
            "initial_facts_count": 0,
            "created_count": 0,
            "updated_count": 0,
        }
        if initial_facts:
            self.add_initial_facts(initial_facts)

    def add_initial_facts(self, facts: Mapping[str, float]) -> None:
        """Seed fakta awal dari input user (sudah dikonversi ke CF)."""
        self.facts_cf.update(dict(facts))
        self.initial_cf.update(dict(facts))
        self.metadata["initial_facts_count"] = len(self.facts_cf)

    def has_fact(self, fact_id: str) -> bool:
        """Cek apakah fakta pernah dievaluasi (nilai 0 tetap dihitung ada)"""
        return fact_id in self.facts_cf

    def has_all_facts(self, fact_ids: Iterable[str]) -> bool:
        return all(fid in self.facts_cf for fid in fact_ids)

    def get_fact(self, fact_id: str) -> Optional[float]:
        """Ambil CF dari fakta; None jika fakta belum dikenal."""
        return self.facts_cf.get(fact_id)

    def get_contribution(self, fact_id: str, rule_id: str) -> Optional[float]:
        """Kontribusi terakhir rule ini untuk fakta; None jika belum pernah."""
        return self.contributions.get(fact_id, {}).get(rule_id)

    def record_contribution(self, fact_id: str, rule_id: str, cf: float) -> float:
        """
        Catat kontribusi rule dan hitung ulang nilai fakta (tanpa menyimpannya).

        Returns:
            Nilai fakta yang baru
        """
        self.contributions.setdefault(fact_id, {})[rule_id] = cf
        return self.derived_value(fact_id)

    def derived_value(self, fact_id: str) -> float:
        combined: Optional[float] = None
        for cf in self.contributions.get(fact_id, {}).values():
            combined = cf if combined is None else combine_cf(combined, cf)
        floor = self.initial_cf.get(fact_id)
        if combined is None:
            return floor if floor is not None else 0.0
        if floor is not None and floor > combined:
            return floor
        return combined

    def create_fact(self, fact_id: str, cf: float) -> None:
        """Pasang fakta baru hasil inferensi."""
        self.facts_cf[fact_id] = cf
        self.metadata["created_count"] += 1

    def update_fact(self, fact_id: str, cf: float) -> float:
        """
        Perbarui fakta yang sudah ada.

        Returns:
            Nilai sebelumnya
        """
        previous = self.facts_cf[fact_id]
        self.facts_cf[fact_id] = cf
        self.metadata["updated_count"] += 1
        return previous

    def snapshot(self) -> Dict[str, float]:
        """Salinan fakta saat ini."""
        return dict(self.facts_cf)

    def get_summary(self) -> Dict:
        """Ambil ringkasan working memory untuk debugging/logging"""
        return {
            "session_id": self.session_id,
            "facts_count": len(self.facts_cf),
            "metadata": self.metadata,
        }

    def __len__(self) -> int:
        return len(self.facts_cf)

    def __repr__(self) -> str:
        return f"WorkingMemory(facts={len(self.facts_cf)}, session={self.session_id})"
