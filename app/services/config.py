# services/config.py

"""
Memuat konfigurasi aplikasi dari configs/app.yaml.

Nilai di file YAML ditimpakan (deep merge) ke DEFAULT_CONFIG, jadi file
konfigurasi cukup berisi bagian yang ingin diubah saja.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

CONFIG_PATH = Path(__file__).parent.parent / "configs" / "app.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "app": {"name": "Sistem Pakar Certainty Factor"},
    "inference": {"epsilon": 1e-6, "max_passes": 1000, "strict_keys": False},
    "database": {"path": "database/", "rules_file": "rules.json", "timeout": 30},
    "logging": {"log_dir": "logs", "log_file": "inference.log", "level": "INFO"},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load konfigurasi. Path bisa diganti lewat env SISTEM_PAKAR_CONFIG.

    Jika file tidak ada, DEFAULT_CONFIG dipakai apa adanya.
    """
    if path is None:
        path = os.environ.get("SISTEM_PAKAR_CONFIG", CONFIG_PATH)
    path = Path(path)
    if not path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return _deep_merge(DEFAULT_CONFIG, data)
