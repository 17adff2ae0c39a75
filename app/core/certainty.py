"""Aljabar Certainty Factor (CF).

Fungsi murni tanpa state:
- combine_cf: kombinasi dua evidence untuk kesimpulan yang sama (MYCIN)
- antecedent_cf: konjungsi premis (MIN)
- label_to_cf: konversi label linguistik ke nilai CF
"""

from typing import Dict, Iterable, Mapping, Optional

DEFAULT_UNCERTAIN_TERMS: Dict[str, float] = {
    "Tidak": 0.0,
    "Mungkin": 0.4,
    "Yakin": 0.6,
    "Sangat Yakin": 0.8,
}


def combine_cf(cf1: float, cf2: float) -> float:
    """
    Kombinasi dua CF menggunakan rumus Certainty Factor
    CF(A,B) = CF(A) + CF(B) * (1 - CF(A))

    Rumus di atas berlaku untuk dua evidence positif, dan hanya kasus itu
    yang dipakai engine. Kasus negatif dan campuran mengikuti aljabar MYCIN
    lengkap.

    Args:
        cf1: CF pertama (nilai lama)
        cf2: CF kedua (kontribusi baru)

    Returns:
        CF gabungan dalam [-1, 1]
    """
    if cf1 >= 0 and cf2 >= 0:
        return cf1 + cf2 * (1 - cf1)
    if cf1 < 0 and cf2 < 0:
        return cf1 + cf2 * (1 + cf1)
    denominator = 1 - min(abs(cf1), abs(cf2))
    if denominator == 0:
        # +1 dan -1: bukti saling meniadakan
        return 0.0
    return (cf1 + cf2) / denominator


def antecedent_cf(values: Iterable[float]) -> float:
    """Agregasi CF premis (AND = MIN). List kosong menghasilkan 0.0."""
    values = list(values)
    return min(values) if values else 0.0


def label_to_cf(label: Optional[str], table: Mapping[str, float]) -> float:
    """Terjemahkan label linguistik ("Yakin", ...) ke nilai CF.

    Label kosong, None, atau tidak dikenal menghasilkan 0.0 (fail-soft).
    """
    if not label:
        return 0.0
    value = table.get(label)
    if value is None:
        return 0.0
    return float(value)
