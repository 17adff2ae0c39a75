"""Rule loader.

Membaca dokumen rules dari file lokal (JSON/YAML) atau URL, lalu
memvalidasinya menjadi RuleSet. Engine tidak pernah menerima rule set
yang hanya termuat sebagian: semua kegagalan dinaikkan sebagai
RuleLoadError / RuleValidationError sebelum inferensi dimulai.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx
import yaml

from core.errors import RuleLoadError, RuleValidationError
from core.models import RuleSet
from database.schema import parse_rule_document

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILE = "rules.json"
DEFAULT_TIMEOUT = 30.0


def _normalize_document(data: Any) -> Any:
    """Terima juga format lama: list rules, atau dict rule_id -> {IF, THEN, CF}."""
    if isinstance(data, list):
        return {"rules": data}
    if isinstance(data, dict) and "rules" not in data and data:
        if all(isinstance(v, dict) and "IF" in v for v in data.values()):
            return {
                "rules": [
                    {
                        "id": rid,
                        "if": rule.get("IF"),
                        "then": rule.get("THEN"),
                        "cf": rule.get("CF"),
                        "desc": rule.get("desc", rule.get("ask_why", "")) or "",
                    }
                    for rid, rule in data.items()
                ]
            }
    return data


def parse_rules_text(text: str, fmt: str = "json", source: str = "<string>") -> RuleSet:
    """Parse teks dokumen rules (json atau yaml) dan validasi."""
    try:
        if fmt == "yaml":
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        logger.error("Failed to parse rules from %s: %s", source, exc)
        raise RuleLoadError(source, f"cannot parse {fmt}: {exc}") from exc

    try:
        rule_set = parse_rule_document(_normalize_document(data))
    except RuleValidationError:
        logger.error("Rule document from %s rejected by validation", source)
        raise
    logger.info("Loaded %d rules from %s", len(rule_set.rules), source)
    return rule_set


def _format_for(name: str, content_type: str = "") -> str:
    if name.lower().endswith((".yaml", ".yml")) or "yaml" in content_type:
        return "yaml"
    return "json"


class DatabaseManager:
    """Manager untuk mengakses rule set di folder database."""

    def __init__(self, db_path: Union[str, Path]):
        """Initialize DatabaseManager dengan path ke folder database.

        Args:
            db_path: Path menuju folder database
        """
        self.db_path = Path(db_path)
        self.rule_set: Optional[RuleSet] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], base_dir: Union[str, Path, None] = None) -> "DatabaseManager":
        db_path = Path(config.get("database", {}).get("path", "database/"))
        if base_dir is not None and not db_path.is_absolute():
            db_path = Path(base_dir) / db_path
        return cls(db_path)

    def load_rule_set(self, name: str = DEFAULT_RULES_FILE) -> RuleSet:
        """Load rules dari file di folder database. Mendukung JSON atau YAML."""
        self.rule_set = load_rules_from_file(self.db_path / name)
        return self.rule_set

    def list_rule_files(self):
        """Daftar file rules yang tersedia."""
        if not self.db_path.exists():
            return []
        return sorted(
            p.name for p in self.db_path.iterdir()
            if p.suffix.lower() in (".json", ".yaml", ".yml")
        )


def load_rules_from_file(path: Union[str, Path]) -> RuleSet:
    path = Path(path)
    if not path.exists():
        logger.error("Rules file not found: %s", path)
        raise RuleLoadError(str(path), "file not found")
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    return parse_rules_text(text, _format_for(path.name), source=str(path))


def load_rules_from_url(
    url: str,
    client: Optional[httpx.Client] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> RuleSet:
    """Ambil dokumen rules lewat HTTP(S)."""
    try:
        if client is None:
            r = httpx.get(url, timeout=timeout)
        else:
            r = client.get(url, timeout=timeout)
        r.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Failed to fetch rules from %s: %s", url, exc)
        raise RuleLoadError(url, str(exc)) from exc
    return parse_rules_text(r.text, _format_for(url, r.headers.get("content-type", "")), source=url)


async def aload_rules_from_url(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> RuleSet:
    """Versi async dari load_rules_from_url (satu kali load sebelum inferensi)."""
    try:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                r = await own_client.get(url, timeout=timeout)
        else:
            r = await client.get(url, timeout=timeout)
        r.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Failed to fetch rules from %s: %s", url, exc)
        raise RuleLoadError(url, str(exc)) from exc
    return parse_rules_text(r.text, _format_for(url, r.headers.get("content-type", "")), source=url)


def load_rules(source: Union[str, Path] = DEFAULT_RULES_FILE, **kwargs) -> RuleSet:
    """Load rules dari path lokal atau URL http(s)://."""
    if isinstance(source, str) and source.startswith(("http://", "https://")):
        return load_rules_from_url(source, **kwargs)
    return load_rules_from_file(source)
