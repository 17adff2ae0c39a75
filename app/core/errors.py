"""Exception hierarchy untuk inference engine.

Semua error turunan dari InferenceError supaya caller cukup menangkap satu
tipe. Label tak dikenal dan premis yang hilang TIDAK pernah menjadi error.
"""

from typing import List, Optional


class InferenceError(Exception):
    """Base class untuk semua error di engine dan loader."""


class RuleValidationError(InferenceError, ValueError):
    """Dokumen rules tidak lolos validasi skema.

    Rule set ditolak secara utuh; ``problems`` berisi semua masalah yang
    ditemukan, bukan hanya yang pertama.
    """

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        detail = "; ".join(self.problems) if self.problems else "unknown problem"
        super().__init__(f"Invalid rule document: {detail}")


class RuleLoadError(InferenceError):
    """Gagal membaca rule set (file, jaringan, atau parsing)."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load rules from '{source}': {reason}")


class InferenceLimitError(InferenceError, RuntimeError):
    """Forward chaining melewati batas jumlah pass."""

    def __init__(self, passes: int, max_passes: int):
        self.passes = passes
        self.max_passes = max_passes
        super().__init__(
            f"Forward chaining did not converge within {max_passes} passes"
        )


class UnknownFactKeyError(InferenceError, KeyError):
    """Input user memakai fact key yang tidak dikenal rule set (strict mode)."""

    def __init__(self, keys: List[str], known: Optional[List[str]] = None):
        self.keys = list(keys)
        self.known = list(known or [])
        super().__init__(f"Unknown fact keys: {', '.join(self.keys)}")

    def __str__(self) -> str:
        # KeyError.__str__ membungkus pesan dengan repr()
        return self.args[0]
