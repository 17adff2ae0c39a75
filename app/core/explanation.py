from typing import Dict, List, Optional, Any, Mapping

import pandas as pd

from .certainty import combine_cf
from .models import RuleSet, TraceEvent

TRACE_COLUMNS = ["ruleId", "conclusion", "previous", "contribution", "combined", "desc"]


class ExplanationFacility:
    """Fasilitas penjelasan untuk sistem pakar.

    Menyimpan trace (urutan evaluasi, bukan urutan kausal) dan menyediakan
    penjelasan HOW: bagaimana sistem sampai pada nilai CF sebuah kesimpulan.
    """

    def __init__(self, rule_set: Optional[RuleSet] = None):
        self.rule_set = rule_set
        self.trace: List[TraceEvent] = []

    @classmethod
    def from_trace(cls, trace: List[TraceEvent], rule_set: Optional[RuleSet] = None) -> "ExplanationFacility":
        facility = cls(rule_set)
        facility.trace.extend(trace)
        return facility

    def add_event(self, event: TraceEvent) -> None:
        """Tambahkan event ke trace (append-only)."""
        self.trace.append(event)

    def get_trace_rows(self) -> List[Dict[str, Any]]:
        """Ambil trace dalam format dict."""
        return [event.to_row() for event in self.trace]

    def trace_table(self) -> pd.DataFrame:
        """Trace sebagai DataFrame, satu baris per event."""
        rows = self.get_trace_rows()
        frame = pd.DataFrame(rows, columns=TRACE_COLUMNS)
        frame.insert(0, "step", range(1, len(rows) + 1))
        return frame

    def events_for(self, conclusion: str) -> List[TraceEvent]:
        return [event for event in self.trace if event.conclusion == conclusion]

    # ============== HOW EXPLANATION ==============

    def explain_how(self, conclusion: str, facts: Optional[Mapping[str, float]] = None) -> str:
        """Jelaskan bagaimana sistem sampai pada kesimpulan.

        Contoh output:
        "K-01 disimpulkan dengan CF 65.0% melalui langkah-langkah berikut:
         1. Aturan R1 ...
         2. Aturan R2 ..."
        """
        events = self.events_for(conclusion)
        if not events:
            return f"Tidak ada trace untuk kesimpulan {conclusion}."

        final_cf = events[-1].value
        if facts is not None and conclusion in facts:
            final_cf = facts[conclusion]

        lines = [f"{conclusion} disimpulkan dengan CF {final_cf * 100:.1f}% melalui langkah-langkah berikut:"]
        for idx, event in enumerate(events, 1):
            premises = self._premises_text(event)
            detail = self._step_detail(event)
            line = f"{idx}. Aturan {event.rule_id}"
            if premises:
                line += f" (JIKA {premises})"
            line += f": {detail}"
            if event.desc:
                line += f" - {event.desc}"
            lines.append(line)
        return "\n".join(lines)

    # ============== HELPER METHODS ==============

    @staticmethod
    def _step_detail(event: TraceEvent) -> str:
        if event.kind == "created":
            return f"CF awal {event.contribution:.4f}"
        if event.replaced is not None:
            # Rule menembak ulang: kontribusi lamanya diganti, bukan dikombinasikan
            return (
                f"kontribusi {event.rule_id} naik {event.replaced:.4f} -> {event.contribution:.4f}"
                f", CF = {event.combined:.4f}"
            )
        if abs(combine_cf(event.previous, event.contribution) - event.combined) <= 1e-9:
            return (
                f"{event.previous:.4f} + {event.contribution:.4f} x (1 - {event.previous:.4f})"
                f" = {event.combined:.4f}"
            )
        # Nilai input untuk fakta turunan bertindak sebagai batas bawah
        return f"kontribusi {event.contribution:.4f}, CF {event.previous:.4f} -> {event.combined:.4f}"

    def _premises_text(self, event: TraceEvent) -> str:
        """Premis rule beserta nilainya pada saat rule menembak."""
        if event.premises:
            return " DAN ".join(f"{key}={cf:.2f}" for key, cf in event.premises.items())
        if self.rule_set is None:
            return ""
        rule = self.rule_set.get_rule(event.rule_id)
        if rule is None:
            return ""
        return " DAN ".join(rule.IF)

    def clear(self) -> None:
        """Reset trace."""
        self.trace.clear()
